"""Core gallery domain entities."""
from typing import Hashable, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from facegallery.domain.entities.descriptor import Descriptor, to_descriptor

# Opaque external key; the classifier never interprets it.
IdentityLabel = Hashable


class Sample(BaseModel):
    """A gallery sample: one descriptor and the category it belongs to."""
    descriptor: Descriptor = Field(..., description="Face descriptor vector")
    category_id: int = Field(..., ge=0, description="Category the descriptor was trained into")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("descriptor", mode="before")
    @classmethod
    def validate_descriptor(cls, v) -> np.ndarray:
        """Convert to a read-only float32 vector."""
        if isinstance(v, np.ndarray) and v.dtype == np.float32 and not v.flags.writeable:
            return v
        return to_descriptor(v)


class LabeledSample(BaseModel):
    """Training input: a descriptor tagged with an external identity label."""
    descriptor: Descriptor = Field(..., description="Face descriptor vector")
    identity_label: IdentityLabel = Field(..., description="External identity key")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("descriptor", mode="before")
    @classmethod
    def validate_descriptor(cls, v) -> np.ndarray:
        """Convert to a read-only float32 vector."""
        return to_descriptor(v)


class Identity(BaseModel):
    """External identity record an identity label resolves into."""
    id: str = Field(..., description="Identity label used in training data")
    name: str = Field(..., description="Display name")
    group: Optional[str] = Field(None, description="Group/band/team the identity belongs to")

    @property
    def display_name(self) -> str:
        """Name and group joined for display, e.g. ``"Joy, Red Velvet"``."""
        if self.group:
            return f"{self.name}, {self.group}"
        return self.name
