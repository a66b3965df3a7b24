"""Env-driven configuration for the cleanup engine, using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings

from regclean.models import ValidationMode


class Settings(BaseSettings):
    """Tunables are loaded from environment variables (or a .env file)."""

    # Host that media and root-relative links are rewritten to point at.
    file_server: str = Field(default="https://files.reglugerd.is", alias="FILE_SERVER")

    # Diffs slower than this are flagged (advisory only).
    slow_diff_ms: float = Field(default=1500, alias="SLOW_DIFF_MS")

    # Remainders at or above these lengths are body text, not entity names.
    article_name_max_length: int = Field(default=90, alias="ARTICLE_NAME_MAX_LENGTH")
    chapter_name_max_length: int = Field(default=60, alias="CHAPTER_NAME_MAX_LENGTH")

    # Images whose smaller side is at most this many pixels are spacers.
    min_image_size: int = Field(default=3, alias="MIN_IMAGE_SIZE")

    validation_mode: ValidationMode = Field(default=ValidationMode.STRICT, alias="VALIDATION_MODE")

    model_config = {"env_file": ".env", "populate_by_name": True, "extra": "ignore"}


settings = Settings()
