"""
Training ingest: builds a descriptor gallery from labeled samples.

Category ids are minted in input order. Under ``GroupingPolicy.ADJACENT``
a new category starts whenever the identity label differs from the label
of the immediately preceding sample, so samples of one identity must be
contiguous to share a category: ``A, B, A`` yields three categories.
``GroupingPolicy.DISTINCT`` assigns one category per distinct label
instead.
"""
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

from facegallery.core.config import GroupingPolicy, settings
from facegallery.core.exceptions import EmptyDatasetError
from facegallery.core.logging import get_logger
from facegallery.domain.entities.descriptor import DescriptorLike
from facegallery.domain.entities.sample import IdentityLabel, LabeledSample
from facegallery.services.descriptor_store import DescriptorStore

logger = get_logger(__name__)

LabeledInput = Union[LabeledSample, Tuple[DescriptorLike, IdentityLabel]]

_NO_LABEL = object()


def assign_categories(
    labels: Iterable[Hashable],
    policy: GroupingPolicy = GroupingPolicy.ADJACENT,
) -> Tuple[List[int], Dict[int, Hashable]]:
    """Assign a category id to every label.

    Args:
        labels: Identity labels in dataset order
        policy: Grouping policy

    Returns:
        Tuple of (category id per label, category id -> label mapping).
        Category ids are contiguous from 0.
    """
    policy = GroupingPolicy(policy)
    categories: List[int] = []
    category_to_identity: Dict[int, Hashable] = {}

    if policy is GroupingPolicy.DISTINCT:
        identity_to_category: Dict[Hashable, int] = {}
        for label in labels:
            if label not in identity_to_category:
                identity_to_category[label] = len(identity_to_category)
                category_to_identity[identity_to_category[label]] = label
            categories.append(identity_to_category[label])
        return categories, category_to_identity

    category_id = -1
    previous = _NO_LABEL
    for label in labels:
        if previous is _NO_LABEL or label != previous:
            category_id += 1
            category_to_identity[category_id] = label
        categories.append(category_id)
        previous = label
    return categories, category_to_identity


def _as_labeled(item: LabeledInput) -> LabeledSample:
    if isinstance(item, LabeledSample):
        return item
    descriptor, identity_label = item
    return LabeledSample(descriptor=descriptor, identity_label=identity_label)


class TrainingIngest:
    """Turns an ordered labeled dataset into a published gallery.

    Example:
        ```python
        ingest = TrainingIngest(policy=GroupingPolicy.ADJACENT)
        store, category_to_identity = ingest.build_store(
            [(d1, "A"), (d2, "A"), (d3, "B")]
        )
        # categories [0, 0, 1], category_to_identity {0: "A", 1: "B"}
        ```
    """

    def __init__(
        self,
        policy: Optional[GroupingPolicy] = None,
        require_non_empty: Optional[bool] = None,
        dimension: Optional[int] = None,
    ) -> None:
        """Initialize the ingest.

        Args:
            policy: Grouping policy, defaults to ``settings.GROUPING_POLICY``
            require_non_empty: Reject empty datasets, defaults to
                ``settings.REQUIRE_NON_EMPTY_DATASET``
            dimension: Fixed descriptor length for stores built by this ingest
        """
        self.policy = GroupingPolicy(policy if policy is not None else settings.GROUPING_POLICY)
        self.require_non_empty = (
            settings.REQUIRE_NON_EMPTY_DATASET if require_non_empty is None else require_non_empty
        )
        self.dimension = dimension

    def build_store(
        self, labeled_samples: Iterable[LabeledInput]
    ) -> Tuple[DescriptorStore, Dict[int, IdentityLabel]]:
        """Build a new store from labeled samples.

        Returns:
            Tuple of (store, category id -> identity label mapping)

        Raises:
            EmptyDatasetError: If the input is empty and a non-empty gallery is required
            DimensionMismatchError: If descriptors differ in length
        """
        store = DescriptorStore(dimension=self.dimension)
        category_to_identity = self.retrain(store, labeled_samples)
        return store, category_to_identity

    def retrain(
        self, store: DescriptorStore, labeled_samples: Iterable[LabeledInput]
    ) -> Dict[int, IdentityLabel]:
        """Rebuild an existing store's gallery in place of its current one.

        The store keeps serving its previous gallery until the new one is
        published; on error it is left untouched.
        """
        samples = [_as_labeled(item) for item in labeled_samples]
        if not samples and self.require_non_empty:
            raise EmptyDatasetError("Training dataset contains no samples")

        categories, category_to_identity = assign_categories(
            (s.identity_label for s in samples), self.policy
        )
        store.replace(
            [s.descriptor for s in samples],
            categories,
            labels=category_to_identity,
        )

        logger.info(
            "Trained gallery",
            samples=len(samples),
            categories=len(category_to_identity),
            identities=len({s.identity_label for s in samples}),
            policy=self.policy.value,
        )
        return category_to_identity


def build_store(
    labeled_samples: Sequence[LabeledInput],
    policy: Optional[GroupingPolicy] = None,
    require_non_empty: Optional[bool] = None,
    dimension: Optional[int] = None,
) -> Tuple[DescriptorStore, Dict[int, IdentityLabel]]:
    """Build a store with a one-off ``TrainingIngest``."""
    ingest = TrainingIngest(policy=policy, require_non_empty=require_non_empty, dimension=dimension)
    return ingest.build_store(labeled_samples)
