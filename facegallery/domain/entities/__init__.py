"""Domain entities package."""
from .descriptor import Descriptor, DescriptorLike, to_descriptor
from .sample import Identity, IdentityLabel, LabeledSample, Sample

__all__ = [
    "Descriptor",
    "DescriptorLike",
    "Identity",
    "IdentityLabel",
    "LabeledSample",
    "Sample",
    "to_descriptor",
]
