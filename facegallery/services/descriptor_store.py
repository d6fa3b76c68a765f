"""
In-memory descriptor gallery with copy-on-write publishing.

The store holds one immutable ``GallerySnapshot`` at a time. ``replace``
validates and builds the next snapshot entirely off to the side and then
publishes it with a single reference assignment, so concurrent readers
observe either the old gallery or the new one, never a mix. Writers are
serialized with a lock; readers never take it.

Example:
    ```python
    store = DescriptorStore(dimension=128)
    store.replace(descriptors, categories, labels={0: "idol-1"})

    snapshot = store.snapshot()
    for sample in store.all():
        ...
    ```
"""
import operator
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

import numpy as np

from facegallery.core.exceptions import (
    ArityMismatchError,
    ConfigurationError,
    DimensionMismatchError,
    InvalidCategoryError,
)
from facegallery.core.logging import get_logger
from facegallery.domain.entities.descriptor import DescriptorLike, to_descriptor
from facegallery.domain.entities.sample import IdentityLabel, Sample

logger = get_logger(__name__)


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class GallerySnapshot:
    """One published generation of the gallery.

    Attributes:
        matrix: (N, D) float32 descriptors, read-only
        categories: (N,) int64 category ids, read-only
        labels: Category id -> identity label mapping, read-only
        dimension: Descriptor length, None while unknown (empty, unfixed store)
        generation: Publish counter, 0 for the initial empty gallery
    """
    matrix: np.ndarray
    categories: np.ndarray
    labels: Mapping[int, IdentityLabel] = field(default_factory=lambda: MappingProxyType({}))
    dimension: Optional[int] = None
    generation: int = 0

    @classmethod
    def empty(cls, dimension: Optional[int] = None, generation: int = 0) -> "GallerySnapshot":
        return cls(
            matrix=_freeze(np.zeros((0, dimension or 0), dtype=np.float32)),
            categories=_freeze(np.zeros((0,), dtype=np.int64)),
            dimension=dimension,
            generation=generation,
        )

    def __len__(self) -> int:
        return int(self.categories.shape[0])

    def label_for(self, category_id: Optional[int]) -> Optional[IdentityLabel]:
        if category_id is None:
            return None
        return self.labels.get(int(category_id))


class DescriptorStore:
    """Ordered gallery of (descriptor, category) samples.

    ``replace`` is the only mutator. Reads go through ``snapshot()``, which
    hands out the currently published generation.
    """

    def __init__(self, dimension: Optional[int] = None) -> None:
        """Initialize an empty store.

        Args:
            dimension: Fixed descriptor length every replacement must match.
                When None, the length is taken from each replacement's samples.
        """
        if dimension is not None and int(dimension) <= 0:
            raise ConfigurationError(
                "Descriptor dimension must be positive", {"dimension": dimension}
            )
        self._fixed_dimension = int(dimension) if dimension is not None else None
        self._write_lock = threading.Lock()
        self._snapshot = GallerySnapshot.empty(self._fixed_dimension)

    def snapshot(self) -> GallerySnapshot:
        """Return the currently published gallery generation."""
        return self._snapshot

    @property
    def dimension(self) -> Optional[int]:
        """Descriptor length of the gallery, None if not yet known."""
        return self._snapshot.dimension

    @property
    def labels(self) -> Mapping[int, IdentityLabel]:
        """Category id -> identity label mapping published with the samples."""
        return self._snapshot.labels

    def size(self) -> int:
        """Number of samples currently held."""
        return len(self._snapshot)

    def __len__(self) -> int:
        return self.size()

    def all(self) -> Iterator[Sample]:
        """Iterate samples in insertion order.

        The iteration is bound to the generation current when it starts; a
        concurrent ``replace`` does not affect an iteration in progress.
        """
        snap = self._snapshot
        for row, category_id in zip(snap.matrix, snap.categories):
            yield Sample(descriptor=row, category_id=int(category_id))

    def replace(
        self,
        samples: Sequence[DescriptorLike],
        categories: Sequence[int],
        labels: Optional[Mapping[int, IdentityLabel]] = None,
    ) -> None:
        """Atomically replace the whole gallery.

        Args:
            samples: Descriptors in gallery order
            categories: Category id for each descriptor
            labels: Optional category id -> identity label mapping

        Raises:
            ArityMismatchError: If samples and categories differ in length
            DimensionMismatchError: If descriptor lengths disagree with each
                other or with the store's fixed dimension
            InvalidCategoryError: If a category or label key is not a non-negative integer
            InvalidDescriptorError: If a descriptor is not a finite 1-D vector
        """
        if len(samples) != len(categories):
            raise ArityMismatchError(
                "Samples and categories must have the same length",
                {"samples": len(samples), "categories": len(categories)},
            )

        rows = [to_descriptor(s, readonly=False) for s in samples]
        dimension = self._check_dimensions(rows)
        cats = self._check_categories(categories)
        frozen_labels = MappingProxyType(self._check_labels(labels))

        if rows:
            matrix = np.ascontiguousarray(np.stack(rows).astype(np.float32, copy=False))
        else:
            matrix = np.zeros((0, dimension or 0), dtype=np.float32)

        with self._write_lock:
            snapshot = GallerySnapshot(
                matrix=_freeze(matrix),
                categories=_freeze(np.asarray(cats, dtype=np.int64).reshape(-1)),
                labels=frozen_labels,
                dimension=dimension,
                generation=self._snapshot.generation + 1,
            )
            self._snapshot = snapshot

        logger.info(
            "Published gallery",
            samples=len(snapshot),
            categories=len(set(cats)),
            dimension=dimension,
            generation=snapshot.generation,
        )

    def clear(self) -> None:
        """Publish an empty gallery."""
        self.replace([], [])

    def _check_dimensions(self, rows: List[np.ndarray]) -> Optional[int]:
        dimension = self._fixed_dimension
        for index, row in enumerate(rows):
            if dimension is None:
                dimension = int(row.shape[0])
            elif int(row.shape[0]) != dimension:
                raise DimensionMismatchError(
                    "Descriptor length does not match gallery dimension",
                    {"index": index, "expected": dimension, "actual": int(row.shape[0])},
                )
        return dimension

    @staticmethod
    def _check_categories(categories: Sequence[int]) -> List[int]:
        cats: List[int] = []
        for index, category in enumerate(categories):
            try:
                value = operator.index(category)
            except TypeError:
                raise InvalidCategoryError(
                    "Category id must be an integer",
                    {"index": index, "value": repr(category)},
                )
            if value < 0:
                raise InvalidCategoryError(
                    "Category id must be non-negative",
                    {"index": index, "value": value},
                )
            cats.append(value)
        return cats

    @staticmethod
    def _check_labels(
        labels: Optional[Mapping[int, IdentityLabel]],
    ) -> Dict[int, IdentityLabel]:
        checked: Dict[int, IdentityLabel] = {}
        for key, label in (labels or {}).items():
            try:
                category_id = operator.index(key)
            except TypeError:
                raise InvalidCategoryError(
                    "Label key must be an integer category id",
                    {"key": repr(key)},
                )
            if category_id < 0:
                raise InvalidCategoryError(
                    "Label key must be non-negative",
                    {"key": category_id},
                )
            checked[category_id] = label
        return checked
