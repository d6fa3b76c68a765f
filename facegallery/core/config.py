"""Configuration settings for the face gallery classifier."""
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict

# Euclidean distance above which the nearest gallery sample is rejected.
# 0.6 is the customary cut-off for 128-d dlib-style face descriptors.
DEFAULT_MATCH_THRESHOLD = 0.6
DEFAULT_DESCRIPTOR_DIM = 128


class GroupingPolicy(str, Enum):
    """How training ingest turns identity labels into category ids."""
    # New category whenever the label differs from the previous element.
    ADJACENT = "adjacent"
    # One category per distinct label, in first-appearance order.
    DISTINCT = "distinct"


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        MATCH_THRESHOLD: Maximum nearest-neighbour Euclidean distance accepted as a match
        DESCRIPTOR_DIM: Descriptor length produced by the configured extractor
        GROUPING_POLICY: Category assignment policy used by training ingest
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
    )

    # Core Settings
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    # Classification Settings
    MATCH_THRESHOLD: float = DEFAULT_MATCH_THRESHOLD
    DESCRIPTOR_DIM: int = DEFAULT_DESCRIPTOR_DIM

    # Training Settings
    GROUPING_POLICY: GroupingPolicy = GroupingPolicy.ADJACENT
    REQUIRE_NON_EMPTY_DATASET: bool = False

    # Extractor Settings
    MAX_FACES_PER_IMAGE: int = 20
    MAX_IMAGE_PIXELS: int = 1920 * 1080  # ~2MP (Full HD)
    MODEL_PATH: str = "buffalo_l"
    MODEL_CACHE_DIR: str = ".model_cache"

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"

settings = Settings()
