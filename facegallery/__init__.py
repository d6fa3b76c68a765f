"""Face gallery classifier: nearest-neighbour identity matching of face descriptors."""
from facegallery.core.config import GroupingPolicy, Settings, settings
from facegallery.services import (
    UNKNOWN,
    Classifier,
    DescriptorStore,
    RecognitionPipeline,
    TrainingIngest,
    assign_categories,
    build_store,
)

__version__ = settings.VERSION

__all__ = [
    "UNKNOWN",
    "Classifier",
    "DescriptorStore",
    "GroupingPolicy",
    "RecognitionPipeline",
    "Settings",
    "TrainingIngest",
    "assign_categories",
    "build_store",
    "settings",
]
