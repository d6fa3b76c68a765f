"""Descriptor type and normalization."""
from typing import Sequence, Union

import numpy as np

from facegallery.core.exceptions import InvalidDescriptorError

# A face embedding: 1-D float32 vector, fixed length per extractor.
Descriptor = np.ndarray

DescriptorLike = Union[np.ndarray, Sequence[float]]


def to_descriptor(value: DescriptorLike, *, readonly: bool = True) -> Descriptor:
    """Convert a descriptor-like value into a 1-D float32 array.

    Args:
        value: numpy array or sequence of floats
        readonly: Return a frozen copy that cannot be mutated in place

    Returns:
        Descriptor: float32 vector

    Raises:
        InvalidDescriptorError: If the value is not a finite, non-empty 1-D vector
    """
    try:
        vec = np.array(value, dtype=np.float32, copy=True)
    except (TypeError, ValueError) as e:
        raise InvalidDescriptorError(f"Descriptor is not numeric: {str(e)}")

    if vec.ndim != 1 or vec.size == 0:
        raise InvalidDescriptorError(
            "Descriptor must be a non-empty 1-D vector", {"shape": vec.shape}
        )
    if not np.all(np.isfinite(vec)):
        raise InvalidDescriptorError("Descriptor contains NaN or infinite values")

    if readonly:
        vec.flags.writeable = False
    return vec
