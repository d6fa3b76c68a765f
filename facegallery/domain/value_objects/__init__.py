"""Value objects package."""
from .classification import Classification, RecognizedFace

__all__ = ["Classification", "RecognizedFace"]
