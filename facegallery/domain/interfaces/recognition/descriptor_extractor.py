"""Descriptor extraction capability interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.descriptor import Descriptor


class DescriptorExtractor(ABC):
    """Interface for the external detect-and-describe capability."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the descriptors this extractor produces."""
        pass

    @abstractmethod
    async def detect_and_describe(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[Descriptor]:
        """
        Detect faces in an image and return one descriptor per face.

        Args:
            image_bytes: Raw encoded image data
            max_faces: Maximum number of faces to describe (None for no limit)

        Returns:
            List of descriptors, empty when no face is found

        Raises:
            InvalidImageError: If the image cannot be decoded
            ExtractorError: If the underlying engine fails
        """
        pass
