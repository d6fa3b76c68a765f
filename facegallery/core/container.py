"""Service container for dependency injection."""
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from facegallery.core.config import Settings, settings
from facegallery.core.exceptions import ConfigurationError
from facegallery.core.logging import get_logger
from facegallery.domain.entities.descriptor import DescriptorLike
from facegallery.domain.entities.sample import Identity, IdentityLabel
from facegallery.domain.interfaces.recognition.descriptor_extractor import DescriptorExtractor
from facegallery.infrastructure.dataset import Dataset, load_dataset
from facegallery.services.classifier import Classifier
from facegallery.services.descriptor_store import DescriptorStore
from facegallery.services.recognition_pipeline import RecognitionPipeline
from facegallery.services.training import LabeledInput, TrainingIngest

logger = get_logger(__name__)


class ServiceContainer:
    """Container for the gallery services.

    One store is shared by the classifier and training ingest; retraining
    publishes a new gallery into that store while classification continues.
    The identity registry loaded with a dataset is keyed by the gallery
    generation it was trained into, so a classification is always resolved
    through the registry of the gallery it was made against.

    Example:
        ```python
        container = ServiceContainer(Settings(DESCRIPTOR_DIM=512, MATCH_THRESHOLD=1.0))
        container.initialize(extractor=InsightFaceDescriptorExtractor())
        container.train_from_file("testdata/idols.json")

        identity = container.identify(descriptor)
        ```
    """

    def __init__(self, config: Optional[Settings] = None) -> None:
        """Initialize empty container."""
        self.settings = config or settings

        self.store: Optional[DescriptorStore] = None
        self.classifier: Optional[Classifier] = None
        self.ingest: Optional[TrainingIngest] = None
        self.pipeline: Optional[RecognitionPipeline] = None

        # gallery generation -> identity registry trained into it
        self._registries: Dict[int, Optional[Dataset]] = {}
        self._train_lock = threading.Lock()

    def initialize(self, extractor: Optional[DescriptorExtractor] = None) -> None:
        """Initialize all services in the correct order.

        Raises:
            ConfigurationError: If the extractor's descriptor length differs
                from ``DESCRIPTOR_DIM``
        """
        if extractor is not None and extractor.dimension != self.settings.DESCRIPTOR_DIM:
            raise ConfigurationError(
                "Extractor descriptor length does not match DESCRIPTOR_DIM",
                {"extractor": extractor.dimension, "gallery": self.settings.DESCRIPTOR_DIM},
            )

        self.store = DescriptorStore(dimension=self.settings.DESCRIPTOR_DIM)
        self.classifier = Classifier(self.store, threshold=self.settings.MATCH_THRESHOLD)
        self.ingest = TrainingIngest(
            policy=self.settings.GROUPING_POLICY,
            require_non_empty=self.settings.REQUIRE_NON_EMPTY_DATASET,
            dimension=self.settings.DESCRIPTOR_DIM,
        )
        self._registries = {}
        if extractor is not None:
            self.pipeline = RecognitionPipeline(
                extractor,
                self.classifier,
                max_faces=self.settings.MAX_FACES_PER_IMAGE,
            )
        logger.info(
            "Initialized gallery services",
            dimension=self.settings.DESCRIPTOR_DIM,
            threshold=self.settings.MATCH_THRESHOLD,
            policy=self.settings.GROUPING_POLICY.value,
            pipeline=self.pipeline is not None,
        )

    @property
    def category_to_identity(self) -> Dict[int, IdentityLabel]:
        if self.store is None:
            return {}
        return dict(self.store.labels)

    @property
    def dataset(self) -> Optional[Dataset]:
        """Identity registry of the currently published gallery, if any."""
        if self.store is None:
            return None
        return self._registries.get(self.store.snapshot().generation)

    def train(self, labeled_samples: Iterable[LabeledInput]) -> Dict[int, IdentityLabel]:
        """Retrain the shared store from labeled samples.

        The new gallery has no identity registry; ``identify`` returns None
        until a dataset is trained from file again.
        """
        self._require_initialized()
        return self._publish(labeled_samples, None)

    def train_from_file(self, path: Union[str, Path]) -> Dict[int, IdentityLabel]:
        """Load a JSON dataset, retrain from it and keep it for identity lookups."""
        self._require_initialized()
        dataset = load_dataset(path, dimension=self.settings.DESCRIPTOR_DIM)
        return self._publish(dataset.labeled_samples(), dataset)

    def identify_label(self, descriptor: DescriptorLike) -> Optional[IdentityLabel]:
        """Classify a descriptor and return the matched identity label."""
        self._require_initialized()
        return self.classifier.classify_detailed(descriptor).identity_label

    def identify(self, descriptor: DescriptorLike) -> Optional[Identity]:
        """Classify a descriptor and resolve it through its gallery's registry."""
        self._require_initialized()
        classification = self.classifier.classify_detailed(descriptor)
        if classification.identity_label is None:
            return None
        registry = self._registries.get(classification.generation)
        if registry is None:
            return None
        return registry.by_id.get(classification.identity_label)

    def cleanup(self) -> None:
        """Release services in reverse order of initialization."""
        self.pipeline = None
        self.ingest = None
        self.classifier = None
        self.store = None
        self._registries = {}

    def _publish(
        self,
        labeled_samples: Iterable[LabeledInput],
        registry: Optional[Dataset],
    ) -> Dict[int, IdentityLabel]:
        # Register under the generation the store is about to publish, before
        # it publishes; the previous generation stays resolvable for
        # classifications already in flight.
        with self._train_lock:
            previous = self.store.snapshot().generation
            generation = previous + 1
            self._registries = {
                previous: self._registries.get(previous),
                generation: registry,
            }
            try:
                category_to_identity = self.ingest.retrain(self.store, labeled_samples)
            except Exception:
                self._registries = {previous: self._registries.get(previous)}
                raise

        return category_to_identity

    def _require_initialized(self) -> None:
        if self.store is None or self.classifier is None or self.ingest is None:
            raise RuntimeError("ServiceContainer.initialize() has not been called")


# Global container instance
container = ServiceContainer()
