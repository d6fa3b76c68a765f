"""
Nearest-neighbour classifier over a descriptor gallery.

Each query is compared against every gallery sample by squared Euclidean
distance (a brute-force scan, vectorized with numpy). The nearest sample
wins unless its distance exceeds the configured threshold, in which case
the query is unknown. Among samples tied at the minimum distance the lowest
category id wins, then the lowest sample index.
"""
import math
from typing import Iterable, List, Optional, Tuple

import numpy as np

from facegallery.core.config import settings
from facegallery.core.exceptions import ConfigurationError, DimensionMismatchError
from facegallery.core.logging import get_logger
from facegallery.domain.entities.descriptor import DescriptorLike, to_descriptor
from facegallery.domain.value_objects.classification import Classification
from facegallery.services.descriptor_store import DescriptorStore, GallerySnapshot

logger = get_logger(__name__)

# Returned by ``Classifier.classify`` when no gallery sample is close enough.
UNKNOWN = None


class Classifier:
    """Threshold nearest-neighbour classifier.

    The classifier holds no mutable state of its own: every call reads one
    published store snapshot, so it is safe to share between workers while
    the store is being retrained.

    Example:
        ```python
        classifier = Classifier(store)
        category_id = classifier.classify(descriptor)
        if category_id is UNKNOWN:
            ...
        ```
    """

    def __init__(self, store: DescriptorStore, threshold: Optional[float] = None) -> None:
        """Initialize the classifier.

        Args:
            store: Gallery to search
            threshold: Maximum accepted Euclidean distance. Defaults to
                ``settings.MATCH_THRESHOLD``.
        """
        if threshold is None:
            threshold = settings.MATCH_THRESHOLD
        threshold = float(threshold)
        if not math.isfinite(threshold) or threshold <= 0:
            raise ConfigurationError(
                "Match threshold must be a positive finite number",
                {"threshold": threshold},
            )
        self._store = store
        self._threshold = threshold
        self._threshold_sq = threshold * threshold

    @property
    def store(self) -> DescriptorStore:
        return self._store

    @property
    def threshold(self) -> float:
        return self._threshold

    def classify(self, query: DescriptorLike) -> Optional[int]:
        """Return the matched category id, or ``UNKNOWN``.

        Raises:
            DimensionMismatchError: If the query length differs from the gallery's
            InvalidDescriptorError: If the query is not a finite 1-D vector
        """
        return self._decide(self._store.snapshot(), query)[0]

    def classify_detailed(self, query: DescriptorLike) -> Classification:
        """Classify and report the nearest sample and its distance."""
        snapshot = self._store.snapshot()
        category_id, nearest = self._decide(snapshot, query)
        if nearest is None:
            return Classification(generation=snapshot.generation)
        index, dist_sq = nearest
        return Classification(
            category_id=category_id,
            distance=math.sqrt(dist_sq),
            sample_index=index,
            identity_label=snapshot.label_for(category_id),
            generation=snapshot.generation,
        )

    def classify_many(self, queries: Iterable[DescriptorLike]) -> List[Optional[int]]:
        """Classify several queries against the same gallery generation."""
        snapshot = self._store.snapshot()
        return [self._decide(snapshot, q)[0] for q in queries]

    def _decide(
        self, snapshot: GallerySnapshot, query: DescriptorLike
    ) -> Tuple[Optional[int], Optional[Tuple[int, float]]]:
        nearest = self._nearest(snapshot, query)
        if nearest is None:
            return UNKNOWN, None

        index, dist_sq = nearest
        if dist_sq > self._threshold_sq:
            logger.debug(
                "Nearest sample beyond threshold",
                distance=math.sqrt(dist_sq),
                threshold=self._threshold,
            )
            return UNKNOWN, nearest

        category_id = int(snapshot.categories[index])
        logger.debug(
            "Matched gallery sample",
            category_id=category_id,
            sample_index=index,
            distance=math.sqrt(dist_sq),
        )
        return category_id, nearest

    @staticmethod
    def _nearest(
        snapshot: GallerySnapshot, query: DescriptorLike
    ) -> Optional[Tuple[int, float]]:
        """Return (sample index, squared distance) of the nearest sample."""
        vec = to_descriptor(query, readonly=False)
        if len(snapshot) == 0:
            return None
        if int(vec.shape[0]) != snapshot.dimension:
            raise DimensionMismatchError(
                "Query descriptor length does not match gallery dimension",
                {"expected": snapshot.dimension, "actual": int(vec.shape[0])},
            )

        diff = snapshot.matrix - vec
        dists = np.einsum("ij,ij->i", diff, diff)
        best = dists.min()
        tied = np.flatnonzero(dists == best)
        # argmin returns the first minimum, i.e. the lowest index for that category
        index = int(tied[np.argmin(snapshot.categories[tied])])
        return index, float(best)
