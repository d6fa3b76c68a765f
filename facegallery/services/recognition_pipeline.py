"""Recognition pipeline: extractor descriptors in, gallery classifications out."""
from typing import List, Optional

from facegallery.core.logging import get_logger
from facegallery.domain.interfaces.recognition.descriptor_extractor import DescriptorExtractor
from facegallery.domain.value_objects.classification import RecognizedFace
from facegallery.services.classifier import Classifier

logger = get_logger(__name__)


class RecognitionPipeline:
    """Runs the external extractor on an image and classifies every face.

    Example:
        ```python
        pipeline = RecognitionPipeline(InsightFaceDescriptorExtractor(), classifier)
        with open("group.jpg", "rb") as f:
            faces = await pipeline.recognize(f.read())
        known = [f for f in faces if f.classification.is_known]
        ```
    """

    def __init__(
        self,
        extractor: DescriptorExtractor,
        classifier: Classifier,
        max_faces: Optional[int] = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            extractor: Detect-and-describe capability
            classifier: Gallery classifier
            max_faces: Maximum number of faces to classify per image
        """
        self.extractor = extractor
        self.classifier = classifier
        self.max_faces = max_faces

    async def recognize(self, image_bytes: bytes) -> List[RecognizedFace]:
        """Classify every face found in an image.

        Returns:
            One RecognizedFace per descriptor, in extractor order

        Raises:
            InvalidImageError: If the image cannot be decoded
            ExtractorError: If the extractor fails
            DimensionMismatchError: If the extractor's descriptors do not fit the gallery
        """
        try:
            descriptors = await self.extractor.detect_and_describe(
                image_bytes, max_faces=self.max_faces
            )
        except Exception as e:
            logger.error("Descriptor extraction failed", error=str(e), exc_info=True)
            raise

        faces = [
            RecognizedFace(
                descriptor=descriptor,
                classification=self.classifier.classify_detailed(descriptor),
            )
            for descriptor in descriptors
        ]
        logger.info(
            "Recognized image",
            faces_found=len(faces),
            faces_known=sum(1 for f in faces if f.classification.is_known),
        )
        return faces

    async def recognize_single(self, image_bytes: bytes) -> Optional[RecognizedFace]:
        """Classify the face in a single-face image.

        Returns:
            The recognized face, or None unless exactly one face was found
        """
        faces = await self.recognize(image_bytes)
        if len(faces) != 1:
            logger.warning("Expected exactly one face", faces_found=len(faces))
            return None
        return faces[0]
