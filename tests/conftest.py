"""Shared fixtures for the gallery test suite."""
from typing import List

import numpy as np
import pytest

from facegallery.core.utils.descriptor import encode_descriptor


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator so galleries are reproducible."""
    return np.random.default_rng(1234)


@pytest.fixture
def unit_vectors() -> List[np.ndarray]:
    """The four 4-d basis vectors."""
    return [row for row in np.eye(4, dtype=np.float32)]


@pytest.fixture
def identity_clusters(rng):
    """Well separated 128-d cluster centres for three identities.

    Centre-to-centre distances are ~16, far above the 0.6 match threshold.
    """
    return {
        "idol-1": rng.normal(size=128).astype(np.float32),
        "idol-2": rng.normal(size=128).astype(np.float32),
        "idol-3": rng.normal(size=128).astype(np.float32),
    }


@pytest.fixture
def dataset_document(rng, identity_clusters):
    """A JSON-ready dataset using the idol key spellings, faces grouped by identity."""
    faces = []
    for identity_id, centre in identity_clusters.items():
        for _ in range(3):
            noisy = centre + rng.normal(scale=0.01, size=centre.shape).astype(np.float32)
            faces.append({"descriptor": encode_descriptor(noisy), "idol_id": identity_id})
    return {
        "idols": [
            {"id": "idol-1", "name": "Joy", "band_name": "Red Velvet"},
            {"id": "idol-2", "name": "Tzuyu", "band_name": "Twice"},
            {"id": "idol-3", "name": "Luda", "band_name": "WJSN"},
        ],
        "faces": faces,
    }
