"""Tests for the end-to-end registration processor."""

import asyncio

import numpy as np
import pytest

from vehicle_ocr.exceptions import (
    EngineUnavailableError,
    ImageDecodeError,
    RecognitionCancelledError,
)
from vehicle_ocr.extraction.assembler import OCRResult
from vehicle_ocr.ocr.registration_processor import RegistrationProcessor
from vehicle_ocr.ocr.tesseract_engine import TesseractEngine
from vehicle_ocr.ocr.workers import CancellationToken, RecognitionWorkerPool
from vehicle_ocr.utils.config import AppConfig


class TestRegistrationProcessor:
    """Tests for RegistrationProcessor with a fake recognition engine."""

    @pytest.fixture(autouse=True)
    def _processor(self, fake_engine) -> None:
        self.engine = fake_engine
        self.processor = RegistrationProcessor(AppConfig(), engine=fake_engine)

    def test_default_engine_is_tesseract(self) -> None:
        processor = RegistrationProcessor()
        assert isinstance(processor.engine, TesseractEngine)
        assert processor.worker_pool.max_workers == 1

    def test_process_bytes(self, png_bytes: bytes) -> None:
        result = self.processor.process(png_bytes)

        assert isinstance(result, OCRResult)
        assert result.vin == "RLHJF5820MY123456"
        assert result.license_plate == "29B1-123.45"
        assert result.color == "Xám Đen"
        assert result.confidence == 87.5
        assert result.raw_text == self.engine.text
        assert result.heuristic_fields == []

    def test_process_decoded_array(self) -> None:
        image = np.full((20, 30, 3), 220, dtype=np.uint8)
        result = self.processor.process(image)
        assert result.brand == "HONDA"
        assert self.engine.calls[0]["image"].shape == (60, 90)

    def test_engine_receives_enhanced_image(self, png_bytes: bytes) -> None:
        self.processor.process(png_bytes)

        call = self.engine.calls[0]
        assert call["image"].shape == (120, 180)
        assert call["image"].dtype == np.uint8
        assert call["language_hints"] == ["vie", "eng"]

    def test_configured_languages(self, png_bytes: bytes) -> None:
        processor = RegistrationProcessor(
            AppConfig(ocr={"languages": ["eng"]}), engine=self.engine
        )
        processor.process(png_bytes)
        assert self.engine.calls[0]["language_hints"] == ["eng"]

    def test_progress_forwarded(self, png_bytes: bytes) -> None:
        progress: list[int] = []
        self.processor.process(png_bytes, on_progress=progress.append)
        assert progress == [0, 40, 100]

    def test_unreadable_text_keeps_raw_text(self, png_bytes: bytes, make_engine) -> None:
        processor = RegistrationProcessor(
            engine=make_engine(text="~~ ,, ..", confidence=12.0)
        )
        result = processor.process(png_bytes)

        assert result.extracted_fields == {}
        assert result.raw_text == "~~ ,, .."
        assert result.confidence == 12.0

    def test_confidence_clamped(self, png_bytes: bytes, make_engine) -> None:
        processor = RegistrationProcessor(engine=make_engine(confidence=140.0))
        assert processor.process(png_bytes).confidence == 100.0

    def test_extra_brands_from_config(self, png_bytes: bytes, make_engine) -> None:
        processor = RegistrationProcessor(
            AppConfig(extraction={"extra_brands": ["DUCATI"]}),
            engine=make_engine(text="Xe DUCATI Monster"),
        )
        result = processor.process(png_bytes)
        assert result.brand == "DUCATI"
        assert result.heuristic_fields == ["brand"]

    def test_undecodable_image(self) -> None:
        with pytest.raises(ImageDecodeError):
            self.processor.process(b"not an image")
        assert self.engine.calls == []

    def test_engine_failure_releases_worker(self, png_bytes: bytes, make_engine) -> None:
        pool = RecognitionWorkerPool(1)
        processor = RegistrationProcessor(
            engine=make_engine(error=EngineUnavailableError("Tesseract is not installed")),
            worker_pool=pool,
        )
        with pytest.raises(EngineUnavailableError):
            processor.process(png_bytes)
        assert pool.in_use == 0

    def test_cancelled_before_start(self, png_bytes: bytes) -> None:
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RecognitionCancelledError):
            self.processor.process(png_bytes, cancel_token=token)
        assert self.engine.calls == []

    def test_cancelled_during_recognition_discards_result(
        self, png_bytes: bytes
    ) -> None:
        token = CancellationToken()
        self.engine.progress = (0,)

        with pytest.raises(RecognitionCancelledError):
            self.processor.process(
                png_bytes, on_progress=lambda _: token.cancel(), cancel_token=token
            )
        assert len(self.engine.calls) == 1
        assert self.processor.worker_pool.in_use == 0

    def test_shared_pool(self, png_bytes: bytes, make_engine) -> None:
        pool = RecognitionWorkerPool(2)
        first = RegistrationProcessor(engine=make_engine(), worker_pool=pool)
        second = RegistrationProcessor(engine=make_engine(), worker_pool=pool)
        assert first.process(png_bytes).vin == second.process(png_bytes).vin
        assert pool.in_use == 0


class TestProcessAsync:
    """Tests for the non-blocking entry point."""

    def test_process_async(self, png_bytes: bytes, fake_engine) -> None:
        processor = RegistrationProcessor(engine=fake_engine)
        result = asyncio.run(processor.process_async(png_bytes))
        assert result.brand == "HONDA"

    def test_process_async_propagates_errors(self, fake_engine) -> None:
        processor = RegistrationProcessor(engine=fake_engine)
        with pytest.raises(ImageDecodeError):
            asyncio.run(processor.process_async(b""))

    def test_task_cancellation_cancels_token(self, png_bytes: bytes, fake_engine) -> None:
        token = CancellationToken()
        pool = RecognitionWorkerPool(1)
        processor = RegistrationProcessor(engine=fake_engine, worker_pool=pool)

        async def run() -> None:
            with pool.acquire():
                task = asyncio.create_task(
                    processor.process_async(png_bytes, cancel_token=token)
                )
                await asyncio.sleep(0.2)
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        asyncio.run(run())
        assert token.cancelled
        assert fake_engine.calls == []
        assert pool.in_use == 0
