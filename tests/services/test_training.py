"""Tests for training ingest and category assignment."""
import pytest

from facegallery.core.config import GroupingPolicy
from facegallery.core.exceptions import DimensionMismatchError, EmptyDatasetError
from facegallery.domain.entities.sample import LabeledSample
from facegallery.services.classifier import Classifier
from facegallery.services.descriptor_store import DescriptorStore
from facegallery.services.training import TrainingIngest, assign_categories, build_store


def categories_of(store: DescriptorStore):
    return [s.category_id for s in store.all()]


class TestAssignCategories:
    """Pure category assignment."""

    def test_adjacent_groups_runs(self):
        categories, mapping = assign_categories(["A", "A", "B", "B", "C"])
        assert categories == [0, 0, 1, 1, 2]
        assert mapping == {0: "A", 1: "B", 2: "C"}

    def test_adjacent_splits_non_contiguous_identity(self):
        categories, mapping = assign_categories(["A", "B", "A"], GroupingPolicy.ADJACENT)
        assert categories == [0, 1, 2]
        assert mapping == {0: "A", 1: "B", 2: "A"}

    def test_distinct_merges_non_contiguous_identity(self):
        categories, mapping = assign_categories(["A", "B", "A", "C", "B"], GroupingPolicy.DISTINCT)
        assert categories == [0, 1, 0, 2, 1]
        assert mapping == {0: "A", 1: "B", 2: "C"}

    def test_policy_accepts_its_string_value(self):
        categories, _ = assign_categories(["A", "B", "A"], "distinct")
        assert categories == [0, 1, 0]

    def test_first_label_always_opens_category_zero(self):
        categories, mapping = assign_categories(["", "", "x"])
        assert categories == [0, 0, 1]
        assert mapping == {0: "", 1: "x"}

    def test_empty_input(self):
        assert assign_categories([]) == ([], {})


class TestTrainingIngest:
    """Test suite for TrainingIngest."""

    def test_contiguous_identities(self, unit_vectors):
        d1, d2, d3 = unit_vectors[:3]
        store, mapping = build_store([(d1, "A"), (d2, "A"), (d3, "B")])

        assert categories_of(store) == [0, 0, 1]
        assert mapping == {0: "A", 1: "B"}
        assert dict(store.labels) == mapping

    def test_non_contiguous_identity_is_split(self, unit_vectors):
        d1, d2, d3 = unit_vectors[:3]
        store, mapping = build_store(
            [(d1, "A"), (d2, "B"), (d3, "A")], policy=GroupingPolicy.ADJACENT
        )

        assert categories_of(store) == [0, 1, 2]
        assert mapping == {0: "A", 1: "B", 2: "A"}
        # The split category still resolves back to the same identity.
        category_id = Classifier(store).classify(d3)
        assert category_id == 2
        assert mapping[category_id] == "A"

    def test_distinct_policy_merges(self, unit_vectors):
        d1, d2, d3 = unit_vectors[:3]
        store, mapping = build_store(
            [(d1, "A"), (d2, "B"), (d3, "A")], policy=GroupingPolicy.DISTINCT
        )
        assert categories_of(store) == [0, 1, 0]
        assert mapping == {0: "A", 1: "B"}

    def test_labeled_sample_input(self, unit_vectors):
        samples = [
            LabeledSample(descriptor=unit_vectors[0], identity_label=101),
            LabeledSample(descriptor=unit_vectors[1], identity_label=202),
        ]
        store, mapping = TrainingIngest().build_store(samples)
        assert categories_of(store) == [0, 1]
        assert mapping == {0: 101, 1: 202}

    def test_empty_dataset_yields_empty_store(self):
        store, mapping = build_store([], require_non_empty=False)
        assert store.size() == 0
        assert mapping == {}
        assert Classifier(store).classify([0.0, 1.0]) is None

    def test_empty_dataset_rejected_when_required(self):
        with pytest.raises(EmptyDatasetError):
            build_store([], require_non_empty=True)

    def test_fixed_dimension(self, unit_vectors):
        ingest = TrainingIngest(dimension=3)
        with pytest.raises(DimensionMismatchError):
            ingest.build_store([(unit_vectors[0], "A")])

    def test_failed_retrain_keeps_previous_gallery(self, unit_vectors):
        ingest = TrainingIngest()
        store, _ = ingest.build_store([(unit_vectors[0], "A"), (unit_vectors[1], "B")])
        before = store.snapshot()

        with pytest.raises(DimensionMismatchError):
            ingest.retrain(store, [([1.0, 0.0, 0.0, 0.0], "A"), ([1.0, 0.0], "C")])

        assert store.snapshot() is before
        assert dict(store.labels) == {0: "A", 1: "B"}

    def test_retrain_replaces_gallery(self, unit_vectors):
        ingest = TrainingIngest()
        store, _ = ingest.build_store([(unit_vectors[0], "A")])
        mapping = ingest.retrain(store, [(unit_vectors[1], "X"), (unit_vectors[2], "Y")])

        assert mapping == {0: "X", 1: "Y"}
        assert store.size() == 2
        assert Classifier(store).classify(unit_vectors[2]) == 1
