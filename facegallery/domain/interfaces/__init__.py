"""Service interfaces package."""
from .recognition import DescriptorExtractor

__all__ = ["DescriptorExtractor"]
