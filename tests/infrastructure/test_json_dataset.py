"""Tests for the JSON dataset loader."""
import json

import numpy as np
import pytest

from facegallery.core.exceptions import DatasetError
from facegallery.core.utils.descriptor import encode_descriptor
from facegallery.infrastructure.dataset import load_dataset, parse_dataset


@pytest.fixture
def dataset_file(tmp_path, dataset_document):
    path = tmp_path / "idols.json"
    path.write_text(json.dumps(dataset_document), encoding="utf-8")
    return path


class TestJsonDataset:
    """Test suite for dataset loading."""

    def test_load_idol_spelling(self, dataset_file, identity_clusters):
        dataset = load_dataset(dataset_file, dimension=128)

        assert len(dataset) == 9
        assert [i.id for i in dataset.identities] == ["idol-1", "idol-2", "idol-3"]
        assert dataset.by_id["idol-2"].display_name == "Tzuyu, Twice"

        samples = dataset.labeled_samples()
        assert [s.identity_label for s in samples] == ["idol-1"] * 3 + ["idol-2"] * 3 + ["idol-3"] * 3
        for sample in samples:
            centre = identity_clusters[sample.identity_label]
            assert np.linalg.norm(sample.descriptor - centre) < 0.6

    def test_generic_spelling(self):
        document = {
            "identities": [{"id": "p1", "name": "Alice"}],
            "faces": [{"descriptor": encode_descriptor([1.0, 2.0]), "identity_id": "p1"}],
        }
        dataset = parse_dataset(json.dumps(document), dimension=2)
        assert dataset.by_id["p1"].group is None
        assert dataset.by_id["p1"].display_name == "Alice"
        np.testing.assert_array_equal(dataset.labeled_samples()[0].descriptor, [1.0, 2.0])

    def test_resolve(self, dataset_file):
        dataset = load_dataset(dataset_file, dimension=128)
        mapping = {0: "idol-1", 1: "idol-3", 2: "ghost"}

        assert dataset.resolve(1, mapping).name == "Luda"
        assert dataset.resolve(None, mapping) is None
        assert dataset.resolve(2, mapping) is None
        assert dataset.resolve(7, mapping) is None

    def test_faces_without_registry_entry_still_load(self):
        document = {"faces": [{"descriptor": encode_descriptor([0.5]), "idol_id": "nobody"}]}
        dataset = parse_dataset(json.dumps(document), dimension=1)
        assert [s.identity_label for s in dataset.labeled_samples()] == ["nobody"]
        assert dataset.by_id == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetError):
            load_dataset(tmp_path / "missing.json")

    def test_invalid_json(self):
        with pytest.raises(DatasetError):
            parse_dataset("{not json")

    def test_face_without_identity(self):
        with pytest.raises(DatasetError):
            parse_dataset(json.dumps({"faces": [{"descriptor": "AAAA"}]}))

    def test_bad_descriptor_reports_face_index(self):
        document = {
            "faces": [
                {"descriptor": encode_descriptor([1.0, 2.0]), "identity_id": "a"},
                {"descriptor": encode_descriptor([1.0]), "identity_id": "b"},
            ]
        }
        dataset = parse_dataset(json.dumps(document), dimension=2)
        with pytest.raises(DatasetError) as exc_info:
            dataset.labeled_samples()
        assert exc_info.value.details["index"] == 1
        assert exc_info.value.details["identity_id"] == "b"
