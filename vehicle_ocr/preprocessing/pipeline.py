"""Image preprocessing pipeline for registration certificate photos.

Decodes the uploaded bytes, upsamples small print, and runs the adaptive
enhancement, measuring image quality before and after.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from vehicle_ocr.exceptions import ImageDecodeError
from vehicle_ocr.utils.config import PreprocessingConfig
from vehicle_ocr.utils.logger import get_logger

from .enhance import EnhancementParams, enhance

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float
    params: EnhancementParams | None = None


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
    return float(cv2.Laplacian(gray, cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities."""
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
    return float(gray.std())


def decode_image(data: bytes) -> np.ndarray:
    """Decode JPEG/PNG bytes into a BGR ``uint8`` array.

    Args:
        data: Encoded image bytes.

    Returns:
        Decoded image.

    Raises:
        ImageDecodeError: If the bytes are empty or cannot be decoded.
    """
    if not data:
        raise ImageDecodeError("Image data is empty")

    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error as exc:
        raise ImageDecodeError(
            "Image could not be decoded", details={"reason": str(exc)}
        ) from exc

    if image is None or image.size == 0:
        raise ImageDecodeError(
            "Image could not be decoded", details={"size_bytes": len(data)}
        )
    return image


def encode_png(image: np.ndarray) -> bytes:
    """Re-encode an image as PNG bytes.

    Args:
        image: ``uint8`` image (grayscale or BGR).

    Returns:
        PNG-encoded bytes.
    """
    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return encoded.tobytes()


def upscale(image: np.ndarray, factor: float) -> np.ndarray:
    """Resize an image by ``factor`` using bicubic interpolation."""
    if factor == 1:
        return image
    height, width = image.shape[:2]
    size = (max(1, round(width * factor)), max(1, round(height * factor)))
    return cv2.resize(image, size, interpolation=cv2.INTER_CUBIC)


class ImagePreprocessor:
    """Turns an uploaded certificate photo into an OCR-ready grayscale image.

    Args:
        config: Preprocessing configuration (scale factor and the
            brightness-dependent contrast/threshold settings).
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def process(self, source: bytes | np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Decode, upscale and enhance an image.

        Args:
            source: Encoded image bytes, or an already decoded BGR/grayscale
                ``uint8`` array.

        Returns:
            Tuple of (enhanced grayscale image, quality_metrics).

        Raises:
            ImageDecodeError: If ``source`` is bytes that cannot be decoded,
                or an empty array.
        """
        if isinstance(source, np.ndarray):
            if source.size == 0:
                raise ImageDecodeError("Image array is empty")
            image = source
            if image.ndim == 3 and image.shape[2] == 4:
                image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        else:
            image = decode_image(source)

        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        scaled = upscale(image, self.config.scale_factor)
        result, params = enhance(scaled, self.config)

        metrics.params = params
        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: %dx%d -> %dx%d, sharpness %.1f->%.1f, "
            "contrast %.1f->%.1f",
            image.shape[1],
            image.shape[0],
            result.shape[1],
            result.shape[0],
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics

    def process_to_png(self, source: bytes | np.ndarray) -> bytes:
        """Run :meth:`process` and re-encode the enhanced image as PNG."""
        result, _ = self.process(source)
        return encode_png(result)
