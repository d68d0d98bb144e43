"""Configuration management for the vehicle registration OCR system.

Loads and validates YAML configuration with defaults tuned for
photographed Vietnamese registration certificates.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class PreprocessingConfig(BaseModel):
    """Adaptive enhancement settings for the image preprocessor.

    Images whose mean brightness is below ``dark_cutoff`` get the stronger
    ``dark_contrast`` factor; images brighter than ``bright_cutoff`` are
    binarized at ``bright_threshold`` instead of ``default_threshold``.
    """

    scale_factor: float = Field(default=3.0, gt=0)
    dark_contrast: float = 1.8
    bright_contrast: float = 1.5
    dark_cutoff: float = 128.0
    bright_cutoff: float = 180.0
    default_threshold: float = 128.0
    bright_threshold: float = 140.0


class OCRConfig(BaseModel):
    """Configuration for the Tesseract recognition engine."""

    tesseract_cmd: str | None = None
    languages: list[str] = Field(default_factory=lambda: ["vie", "eng"])
    psm: int = 3
    timeout_s: float = 0
    max_workers: int = Field(default=1, ge=1)

    @field_validator("languages")
    @classmethod
    def _languages_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one OCR language is required")
        return value


class ExtractionConfig(BaseModel):
    """Configuration for field extraction."""

    extra_brands: list[str] = Field(default_factory=list)


class ServerConfig(BaseModel):
    """Bind address for the API server."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
