"""
Labeled descriptor dataset stored as JSON.

Document layout::

    {
      "identities": [{"id": "...", "name": "...", "group": "..."}],
      "faces": [{"descriptor": "<base64 float32>", "identity_id": "..."}]
    }

The ``idols``/``band_name``/``idol_id`` key spellings are accepted as
aliases. Faces are kept in file order, which is the order training ingest
mints categories in.
"""
from pathlib import Path
from typing import Dict, Hashable, List, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from facegallery.core.config import settings
from facegallery.core.exceptions import DatasetError, DescriptorDecodeError
from facegallery.core.logging import get_logger
from facegallery.core.utils.descriptor import decode_descriptor
from facegallery.domain.entities.sample import Identity, LabeledSample

logger = get_logger(__name__)


class DatasetIdentity(BaseModel):
    """Identity record as stored in the dataset file."""
    id: str
    name: str
    group: Optional[str] = Field(None, validation_alias=AliasChoices("group", "band_name"))


class DatasetFace(BaseModel):
    """Face record as stored in the dataset file."""
    descriptor: str = Field(..., description="Base64 little-endian float32 descriptor")
    identity_id: str = Field(..., validation_alias=AliasChoices("identity_id", "idol_id"))


class DatasetDocument(BaseModel):
    """Top-level dataset document."""
    identities: List[DatasetIdentity] = Field(
        default_factory=list, validation_alias=AliasChoices("identities", "idols")
    )
    faces: List[DatasetFace] = Field(default_factory=list)


class Dataset:
    """Parsed dataset with an identity registry."""

    def __init__(self, document: DatasetDocument, dimension: Optional[int] = None) -> None:
        self.dimension = dimension or settings.DESCRIPTOR_DIM
        self.faces = document.faces
        self.identities = [
            Identity(id=i.id, name=i.name, group=i.group) for i in document.identities
        ]
        self.by_id: Dict[str, Identity] = {i.id: i for i in self.identities}

        unknown_ids = {f.identity_id for f in self.faces} - set(self.by_id)
        if unknown_ids:
            logger.warning(
                "Faces reference identities missing from the registry",
                identity_ids=sorted(unknown_ids),
            )

    def __len__(self) -> int:
        return len(self.faces)

    def labeled_samples(self) -> List[LabeledSample]:
        """Decode every face into a labeled sample, in file order.

        Raises:
            DatasetError: If a descriptor cannot be decoded
        """
        samples: List[LabeledSample] = []
        for index, face in enumerate(self.faces):
            try:
                descriptor = decode_descriptor(face.descriptor, self.dimension)
            except DescriptorDecodeError as e:
                raise DatasetError(
                    f"Invalid descriptor for face {index}: {str(e)}",
                    {"index": index, "identity_id": face.identity_id, **e.details},
                )
            samples.append(LabeledSample(descriptor=descriptor, identity_label=face.identity_id))
        return samples

    def resolve(
        self,
        category_id: Optional[int],
        category_to_identity: Mapping[int, Hashable],
    ) -> Optional[Identity]:
        """Resolve a classification result into an identity record."""
        if category_id is None:
            return None
        identity_id = category_to_identity.get(category_id)
        if identity_id is None:
            return None
        return self.by_id.get(identity_id)


def parse_dataset(data: Union[str, bytes], dimension: Optional[int] = None) -> Dataset:
    """Parse a JSON dataset document.

    Raises:
        DatasetError: If the document is not valid JSON or misses required fields
    """
    try:
        document = DatasetDocument.model_validate_json(data)
    except ValidationError as e:
        raise DatasetError(f"Invalid dataset document: {str(e)}", {"errors": e.error_count()})
    return Dataset(document, dimension=dimension)


def load_dataset(path: Union[str, Path], dimension: Optional[int] = None) -> Dataset:
    """Load a JSON dataset file.

    Raises:
        DatasetError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DatasetError(f"Cannot read dataset file: {str(e)}", {"path": str(path)})

    dataset = parse_dataset(data, dimension=dimension)
    logger.info(
        "Loaded dataset",
        path=str(path),
        identities=len(dataset.identities),
        faces=len(dataset),
    )
    return dataset
