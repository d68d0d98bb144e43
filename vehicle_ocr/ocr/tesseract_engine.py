"""Tesseract recognition engine behind a narrow ``recognize`` interface.

The extractor only ever sees ``(text, confidence)``, so the engine can be
swapped or faked in tests without touching extraction logic.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np
import pytesseract
from PIL import Image
from pytesseract import TesseractError, TesseractNotFoundError

from vehicle_ocr.exceptions import EngineUnavailableError
from vehicle_ocr.utils.logger import get_logger

from .workers import CancellationToken, ProgressCallback, ProgressReporter

logger = get_logger(__name__)

DEFAULT_LANGUAGES: tuple[str, ...] = ("vie", "eng")

_VIETNAMESE_UPPER = (
    "ÀÁẢÃẠĂẰẮẲẴẶÂẦẤẨẪẬÈÉẺẼẸÊỀẾỂỄỆÌÍỈĨỊÒÓỎÕỌÔỒỐỔỖỘƠỜỚỞỠỢÙÚỦŨỤƯỪỨỬỮỰỲÝỶỸỴĐ"
)

# Latin letters, digits, Vietnamese letters and the label punctuation.
CHAR_WHITELIST = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    + _VIETNAMESE_UPPER
    + _VIETNAMESE_UPPER.lower()
    + "/:()-.,"
)


@runtime_checkable
class RecognitionEngine(Protocol):
    """Anything that turns an image into text plus an average confidence."""

    def recognize(
        self,
        image: np.ndarray,
        language_hints: Sequence[str],
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> tuple[str, float]: ...


class TesseractEngine:
    """Wrapper around Tesseract OCR for registration certificates.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        psm: Tesseract page segmentation mode.
        timeout_s: Per-pass timeout in seconds; ``0`` disables it.
        whitelist: Characters Tesseract may emit.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        psm: int = 3,
        timeout_s: float = 0,
        whitelist: str = CHAR_WHITELIST,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.psm = psm
        self.timeout_s = timeout_s
        self.whitelist = whitelist

    @property
    def tesseract_config(self) -> str:
        return (
            f"--psm {self.psm} "
            f"-c tessedit_char_whitelist={self.whitelist} "
            "-c preserve_interword_spaces=1"
        )

    def is_available(self) -> bool:
        """Return whether the Tesseract binary can be found and run."""
        try:
            pytesseract.get_tesseract_version()
        except (TesseractNotFoundError, OSError):
            return False
        return True

    def available_languages(self) -> list[str]:
        """List the installed Tesseract language packs, empty if unavailable."""
        try:
            return list(pytesseract.get_languages(config=""))
        except (TesseractNotFoundError, TesseractError, OSError):
            return []

    def recognize(
        self,
        image: np.ndarray,
        language_hints: Sequence[str] = DEFAULT_LANGUAGES,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> tuple[str, float]:
        """Recognize text in an enhanced certificate image.

        Runs a text pass and a word-data pass; progress is reported at the
        start, between the passes and at completion.

        Args:
            image: Enhanced grayscale image.
            language_hints: Tesseract language codes, joined with ``+``.
            on_progress: Optional receiver of percentages 0-100.
            cancel_token: Optional token checked between passes.

        Returns:
            Tuple of (recognized text, mean word confidence in 0-100).

        Raises:
            EngineUnavailableError: If Tesseract is missing, fails, or times out.
            RecognitionCancelledError: If ``cancel_token`` is cancelled.
        """
        reporter = ProgressReporter(on_progress)
        reporter.report(0)

        lang = "+".join(language_hints) or "+".join(DEFAULT_LANGUAGES)
        config = self.tesseract_config
        pil_image = Image.fromarray(image)

        try:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            text = pytesseract.image_to_string(
                pil_image, lang=lang, config=config, timeout=self.timeout_s
            )
            reporter.report(50)

            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=config,
                timeout=self.timeout_s,
                output_type=pytesseract.Output.DICT,
            )
        except TesseractNotFoundError as exc:
            logger.warning("Tesseract executable not found")
            raise EngineUnavailableError("Tesseract is not installed") from exc
        except (TesseractError, RuntimeError, OSError) as exc:
            logger.warning("Tesseract failed: %s", exc)
            raise EngineUnavailableError(
                "Tesseract failed during recognition", details={"reason": str(exc)}
            ) from exc

        confidence = _mean_word_confidence(data)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        reporter.report(100)

        logger.info(
            "OCR recognized %d characters (lang=%s) with confidence %.1f",
            len(text),
            lang,
            confidence,
        )
        return text, confidence


def _mean_word_confidence(data: dict) -> float:
    """Average the confidences of non-empty words, clamped to 0-100."""
    total = 0.0
    count = 0
    for word, conf in zip(data.get("text", []), data.get("conf", [])):
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value > 0 and str(word).strip():
            total += value
            count += 1

    if count == 0:
        return 0.0
    return min(100.0, max(0.0, total / count))
