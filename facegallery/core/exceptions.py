"""Custom exceptions for the face gallery classifier."""
from typing import Optional


class FaceGalleryError(Exception):
    """Base exception for face gallery operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face gallery error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FaceGalleryError):
    """Raised when a component is constructed with an unusable setting."""
    pass


class GalleryError(FaceGalleryError):
    """Base exception for gallery contract violations."""
    pass


class DimensionMismatchError(GalleryError):
    """Raised when a descriptor length disagrees with the gallery dimensionality."""
    pass


class ArityMismatchError(GalleryError):
    """Raised when samples and categories differ in length on replacement."""
    pass


class InvalidCategoryError(GalleryError):
    """Raised when a category id is not a non-negative integer."""
    pass


class InvalidDescriptorError(GalleryError):
    """Raised when a descriptor is not a finite one-dimensional vector."""
    pass


class EmptyDatasetError(FaceGalleryError):
    """Raised when training requires a non-empty gallery and got no samples."""
    pass


class DescriptorDecodeError(FaceGalleryError):
    """Raised when serialized descriptor bytes cannot be decoded."""
    pass


class DatasetError(FaceGalleryError):
    """Raised when a labeled dataset file is missing or malformed."""
    pass


class ExtractorError(FaceGalleryError):
    """Raised when the external detector/extractor fails on an image."""
    pass


class InvalidImageError(ExtractorError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass
