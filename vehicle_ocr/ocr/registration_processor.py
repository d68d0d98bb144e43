"""End-to-end processing of one registration certificate photo.

Image bytes go through preprocessing, recognition, field extraction and
result assembly. Each call is independent; the only shared resource is
the recognition worker pool.
"""

import asyncio

import numpy as np

from vehicle_ocr.extraction.assembler import OCRResult, assemble_result
from vehicle_ocr.extraction.field_extractor import FieldExtractor
from vehicle_ocr.preprocessing.pipeline import ImagePreprocessor
from vehicle_ocr.utils.config import AppConfig
from vehicle_ocr.utils.logger import get_logger

from .tesseract_engine import RecognitionEngine, TesseractEngine
from .workers import (
    CancellationToken,
    ProgressCallback,
    RecognitionWorkerPool,
)

logger = get_logger(__name__)


class RegistrationProcessor:
    """Reads a vehicle registration certificate into an :class:`OCRResult`.

    Args:
        config: Application configuration object.
        engine: Recognition engine; defaults to Tesseract built from
            ``config.ocr``.
        worker_pool: Shared pool limiting concurrent recognitions; defaults
            to a new pool sized by ``config.ocr.max_workers``.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        engine: RecognitionEngine | None = None,
        worker_pool: RecognitionWorkerPool | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.preprocessor = ImagePreprocessor(self.config.preprocessing)
        self.engine = engine or TesseractEngine(
            tesseract_cmd=self.config.ocr.tesseract_cmd,
            psm=self.config.ocr.psm,
            timeout_s=self.config.ocr.timeout_s,
        )
        self.worker_pool = worker_pool or RecognitionWorkerPool(
            self.config.ocr.max_workers
        )
        self.extractor = FieldExtractor(extra_brands=self.config.extraction.extra_brands)

    def process(
        self,
        image: bytes | np.ndarray,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> OCRResult:
        """Extract registration fields from a certificate image.

        Args:
            image: JPEG/PNG bytes or a decoded BGR array.
            on_progress: Optional receiver of recognition progress (0-100).
            cancel_token: Optional token to abandon the call.

        Returns:
            The assembled result; missing fields are ``None``.

        Raises:
            ImageDecodeError: If the image cannot be decoded.
            EngineUnavailableError: If recognition fails.
            RecognitionCancelledError: If ``cancel_token`` is cancelled.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        enhanced, _ = self.preprocessor.process(image)

        with self.worker_pool.acquire(cancel_token):
            text, confidence = self.engine.recognize(
                enhanced,
                self.config.ocr.languages,
                on_progress=on_progress,
                cancel_token=cancel_token,
            )

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        fields = self.extractor.extract(text)
        result = assemble_result(fields, text, confidence)
        logger.info(
            "Extracted %d registration fields (confidence %.1f, heuristic: %s)",
            len(result.extracted_fields),
            result.confidence,
            ", ".join(result.heuristic_fields) or "none",
        )
        return result

    async def process_async(
        self,
        image: bytes | np.ndarray,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> OCRResult:
        """Run :meth:`process` in a worker thread without blocking the event loop.

        If the awaiting task is cancelled, the token is cancelled too so the
        worker thread stops at its next checkpoint and frees its slot.
        """
        token = cancel_token or CancellationToken()
        try:
            return await asyncio.to_thread(self.process, image, on_progress, token)
        except asyncio.CancelledError:
            token.cancel()
            raise
