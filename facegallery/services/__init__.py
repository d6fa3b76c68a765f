"""Gallery services: store, classifier, training ingest and recognition pipeline."""
from .classifier import UNKNOWN, Classifier
from .descriptor_store import DescriptorStore, GallerySnapshot
from .recognition_pipeline import RecognitionPipeline
from .training import TrainingIngest, assign_categories, build_store

__all__ = [
    "UNKNOWN",
    "Classifier",
    "DescriptorStore",
    "GallerySnapshot",
    "RecognitionPipeline",
    "TrainingIngest",
    "assign_categories",
    "build_store",
]
