"""
Descriptor serialization helpers.

Descriptors travel as little-endian float32 bytes, usually base64 encoded
inside JSON datasets. Decoding validates the byte length before any
conversion so a truncated or oversized payload never becomes a vector.
"""
import base64
import binascii
from typing import Union

import numpy as np

from facegallery.core.config import DEFAULT_DESCRIPTOR_DIM
from facegallery.core.exceptions import DescriptorDecodeError

DESCRIPTOR_DTYPE = np.dtype("<f4")


def decode_descriptor(
    data: Union[str, bytes, bytearray, memoryview],
    dimension: int = DEFAULT_DESCRIPTOR_DIM,
) -> np.ndarray:
    """Decode a serialized descriptor into a float32 vector.

    Args:
        data: Base64 text, or the raw little-endian float32 bytes
        dimension: Expected number of components

    Returns:
        numpy.ndarray: Writable 1-D float32 array of length ``dimension``

    Raises:
        DescriptorDecodeError: If the payload is not valid base64 or has the wrong size
    """
    if dimension <= 0:
        raise DescriptorDecodeError(
            "Descriptor dimension must be positive", {"dimension": dimension}
        )

    if isinstance(data, str):
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DescriptorDecodeError(f"Invalid base64 descriptor: {str(e)}")
    elif isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
    else:
        raise DescriptorDecodeError(
            f"Unsupported descriptor payload type: {type(data).__name__}"
        )

    expected = dimension * DESCRIPTOR_DTYPE.itemsize
    if len(raw) != expected:
        raise DescriptorDecodeError(
            "Descriptor payload has wrong size",
            {"expected_bytes": expected, "actual_bytes": len(raw)},
        )

    # frombuffer shares the immutable bytes; copy to get an owned float32 array
    return np.frombuffer(raw, dtype=DESCRIPTOR_DTYPE).astype(np.float32)


def encode_descriptor(descriptor) -> str:
    """Encode a descriptor as base64 little-endian float32 text."""
    vec = np.asarray(descriptor, dtype=DESCRIPTOR_DTYPE).reshape(-1)
    return base64.b64encode(vec.tobytes()).decode("ascii")
