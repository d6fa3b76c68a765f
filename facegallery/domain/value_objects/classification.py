"""Classification value objects."""
from typing import Hashable, Optional

from pydantic import BaseModel, ConfigDict, Field

from facegallery.domain.entities.descriptor import Descriptor


class Classification(BaseModel):
    """Outcome of classifying one descriptor against the gallery.

    ``category_id`` is None when the query was rejected as unknown; the
    distance and sample index still describe the nearest sample, if any.
    """
    category_id: Optional[int] = Field(None, description="Matched category, None when unknown")
    distance: Optional[float] = Field(None, description="Euclidean distance to the nearest sample")
    sample_index: Optional[int] = Field(None, description="Index of the nearest sample in the gallery")
    identity_label: Optional[Hashable] = Field(None, description="Label mapped from the matched category")
    generation: Optional[int] = Field(None, description="Gallery generation the query was classified against")

    @property
    def is_known(self) -> bool:
        """Whether the query was accepted as a gallery identity."""
        return self.category_id is not None


class RecognizedFace(BaseModel):
    """A descriptor produced by the extractor together with its classification."""
    descriptor: Descriptor = Field(..., description="Descriptor of the detected face")
    classification: Classification = Field(..., description="Gallery classification result")

    model_config = ConfigDict(arbitrary_types_allowed=True)
