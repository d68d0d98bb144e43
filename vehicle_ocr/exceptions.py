"""Exceptions raised by the vehicle registration OCR pipeline.

Only hard failures are exceptions. A field that cannot be extracted is
simply left out of the result.
"""

from typing import Any


class VehicleOCRError(Exception):
    """Base exception for all pipeline failures.

    Attributes:
        message: Developer-facing description of the failure.
        details: Extra context for logs.
        user_message: Single message the registration form shows the user.
    """

    user_message = "Could not read the photo, please retry with a clearer image."

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ImageDecodeError(VehicleOCRError):
    """The input bytes are empty, corrupt, or not a supported raster format."""


class EngineUnavailableError(VehicleOCRError):
    """The recognition engine is missing, failed to start, or crashed mid-run."""

    def __init__(
        self,
        message: str,
        engine: str = "tesseract",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details={"engine": engine, **(details or {})})
        self.engine = engine


class RecognitionCancelledError(VehicleOCRError):
    """The caller cancelled the extraction; any in-flight result was discarded."""

    user_message = "Photo reading was cancelled."
