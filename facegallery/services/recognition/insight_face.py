"""
InsightFace-based implementation of the descriptor extractor.

Decodes an encoded image with OpenCV, downsizes it when it exceeds the
configured pixel budget, and returns one L2-normalized embedding per
detected face.

Example:
    ```python
    extractor = InsightFaceDescriptorExtractor()
    with open("image.jpg", "rb") as f:
        descriptors = await extractor.detect_and_describe(f.read(), max_faces=5)
    ```

Note:
    InsightFace embeddings are 512-d; set ``DESCRIPTOR_DIM=512`` and tune
    ``MATCH_THRESHOLD`` for normalized embeddings when using this extractor.
"""
import math
from typing import Any, List, Optional, TypeVar

import cv2
import numpy as np
from insightface.app import FaceAnalysis

from facegallery.core.config import settings
from facegallery.core.exceptions import ExtractorError, InvalidImageError
from facegallery.core.logging import get_logger
from facegallery.domain.entities.descriptor import Descriptor, to_descriptor
from facegallery.domain.interfaces.recognition.descriptor_extractor import DescriptorExtractor

logger = get_logger(__name__)

T = TypeVar('T', bound='InsightFaceDescriptorExtractor')

INSIGHTFACE_DIM = 512


class InsightFaceDescriptorExtractor(DescriptorExtractor):
    """InsightFace detect-and-describe capability.

    Attributes:
        model: InsightFace model instance for face analysis
    """

    def __init__(self, det_size: int = 640) -> None:
        """Initialize the InsightFace model on CPU."""
        self.model = FaceAnalysis(
            name=settings.MODEL_PATH,
            root=settings.MODEL_CACHE_DIR,
            providers=['CPUExecutionProvider']
        )
        self.model.prepare(ctx_id=0, det_size=(det_size, det_size))

    @property
    def dimension(self) -> int:
        return INSIGHTFACE_DIM

    async def __aenter__(self: T) -> T:
        logger.debug("Entering InsightFace extractor context")
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        logger.debug("Releasing InsightFace model")
        self.model = None

    def _load_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes and shrink oversized images."""
        nparr = np.frombuffer(image_bytes, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is None:
            raise InvalidImageError("Failed to decode image")

        height, width = img.shape[:2]
        pixels = width * height
        if pixels > settings.MAX_IMAGE_PIXELS:
            scale = math.sqrt(settings.MAX_IMAGE_PIXELS / pixels)
            new_size = (int(width * scale), int(height * scale))
            logger.info(
                "Resizing large image",
                original_size=(width, height),
                new_size=new_size
            )
            img = cv2.resize(img, new_size, interpolation=cv2.INTER_AREA)
        return img

    async def detect_and_describe(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[Descriptor]:
        """Detect faces and return their normalized embeddings."""
        if self.model is None:
            raise ExtractorError("InsightFace model has been released")

        img = self._load_image(image_bytes)
        try:
            faces = self.model.get(img, max_num=0 if max_faces is None else max_faces)
        except Exception as e:
            logger.error(
                "Face processing failed",
                error=str(e),
                image_shape=img.shape,
                exc_info=True
            )
            raise ExtractorError(f"InsightFace failed: {str(e)}")

        if max_faces is not None:
            faces = faces[:max_faces]

        logger.debug("Face detection results", faces_found=len(faces))
        return [
            to_descriptor(face.normed_embedding)
            for face in faces
            if face.embedding is not None
        ]
