"""Shared test fixtures for the vehicle registration OCR test suite."""

from collections.abc import Sequence
from pathlib import Path

import cv2
import numpy as np
import pytest

SAMPLE_CERTIFICATE_TEXT = """CỘNG HÒA XÃ HỘI CHỦ NGHĨA VIỆT NAM
GIẤY CHỨNG NHẬN ĐĂNG KÝ XE MÔ TÔ, XE MÁY
Tên chủ xe (Owner's full name): NGUYỄN VĂN AN
Địa chỉ (Address): 12 Phố Huế, Hai Bà Trưng, Hà Nội
Nhãn hiệu (Brand): HONDA
Số loại (Model code): VISION
Màu sơn (Color): Xám đen
Số máy (Engine No): JF58E1234567
Số khung (Chassis No): RLHJF5820MY123456
Biển số đăng ký (No plate) (T)
29B1-123.45
Đống Đa, ngày 15 tháng 8 năm 2023
"""


class FakeEngine:
    """Recognition engine double returning canned text."""

    def __init__(
        self,
        text: str = SAMPLE_CERTIFICATE_TEXT,
        confidence: float = 87.5,
        progress: Sequence[int] = (0, 40, 100),
        error: Exception | None = None,
    ) -> None:
        self.text = text
        self.confidence = confidence
        self.progress = progress
        self.error = error
        self.calls: list[dict] = []

    def recognize(self, image, language_hints, on_progress=None, cancel_token=None):
        self.calls.append({"image": image, "language_hints": list(language_hints)})
        if self.error is not None:
            raise self.error
        for value in self.progress:
            if on_progress is not None:
                on_progress(value)
        return self.text, self.confidence


def make_png_bytes(height: int = 40, width: int = 60) -> bytes:
    """Encode a synthetic certificate-like BGR image (dark bars on light paper)."""
    image = np.full((height, width, 3), 220, dtype=np.uint8)
    image[10:14, 5 : width - 5] = 30
    image[24:28, 5 : width // 2] = 30
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()


@pytest.fixture
def sample_text() -> str:
    """Recognized text of a complete motorbike registration certificate."""
    return SAMPLE_CERTIFICATE_TEXT


@pytest.fixture
def png_bytes() -> bytes:
    """A small decodable PNG image."""
    return make_png_bytes()


@pytest.fixture
def fake_engine() -> FakeEngine:
    """A recognition engine double returning the sample certificate text."""
    return FakeEngine()


@pytest.fixture
def make_engine() -> type[FakeEngine]:
    """The engine double class, for tests that need custom text or errors."""
    return FakeEngine


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
