"""Tests for the FastAPI REST endpoints."""

import inspect
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from pytesseract import TesseractNotFoundError

from vehicle_ocr import __version__
from vehicle_ocr.api.app import app, health_check
from vehicle_ocr.exceptions import EngineUnavailableError, VehicleOCRError
from vehicle_ocr.ocr.registration_processor import RegistrationProcessor
from vehicle_ocr.ocr.tesseract_engine import TesseractEngine


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


def _patch_processor(engine):
    return patch(
        "vehicle_ocr.api.app._get_processor",
        return_value=RegistrationProcessor(engine=engine),
    )


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_with_fake_engine(self, client: TestClient, fake_engine) -> None:
        with _patch_processor(fake_engine):
            response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["tesseract_available"] is True

    def test_health_runs_off_event_loop(self) -> None:
        assert not inspect.iscoroutinefunction(health_check)

    @patch("vehicle_ocr.ocr.tesseract_engine.pytesseract")
    def test_health_tesseract_missing(
        self, mock_tess: MagicMock, client: TestClient
    ) -> None:
        mock_tess.get_tesseract_version.side_effect = TesseractNotFoundError()
        with _patch_processor(TesseractEngine()):
            response = client.get("/health")
        data = response.json()
        assert data["tesseract_available"] is False
        assert data["languages_available"] == []

    @patch("vehicle_ocr.ocr.tesseract_engine.pytesseract")
    def test_health_lists_languages(
        self, mock_tess: MagicMock, client: TestClient
    ) -> None:
        mock_tess.get_tesseract_version.return_value = "5.3.0"
        mock_tess.get_languages.return_value = ["eng", "vie"]
        with _patch_processor(TesseractEngine()):
            data = client.get("/health").json()
        assert data["tesseract_available"] is True
        assert data["languages_available"] == ["eng", "vie"]


class TestExtractEndpoint:
    """Tests for POST /extract."""

    def test_extract_success(
        self, client: TestClient, fake_engine, png_bytes: bytes
    ) -> None:
        with _patch_processor(fake_engine):
            response = client.post(
                "/extract", files={"file": ("cert.png", png_bytes, "image/png")}
            )
        assert response.status_code == 200
        data = response.json()
        assert data["vin"] == "RLHJF5820MY123456"
        assert data["engineNumber"] == "JF58E1234567"
        assert data["licensePlate"] == "29B1-123.45"
        assert data["ownerName"] == "NGUYỄN VĂN AN"
        assert data["registrationDate"] == "15/08/2023"
        assert data["confidence"] == 87.5
        assert data["heuristicFields"] == []
        assert "rawText" in data

    def test_missing_fields_omitted(
        self, client: TestClient, make_engine, png_bytes: bytes
    ) -> None:
        engine = make_engine(text="Chassis No: 1HGCM82633A123456")
        with _patch_processor(engine):
            response = client.post(
                "/extract", files={"file": ("cert.jpg", png_bytes, "image/jpeg")}
            )
        data = response.json()
        assert data["vin"] == "1HGCM82633A123456"
        assert "ownerName" not in data
        assert "brand" not in data
        assert data["rawText"] == "Chassis No: 1HGCM82633A123456"

    def test_unsupported_type(self, client: TestClient, fake_engine) -> None:
        with _patch_processor(fake_engine):
            response = client.post(
                "/extract", files={"file": ("notes.txt", b"hello", "text/plain")}
            )
        assert response.status_code == 400
        assert "Unsupported" in response.json()["detail"]

    def test_undecodable_image(self, client: TestClient, fake_engine) -> None:
        with _patch_processor(fake_engine):
            response = client.post(
                "/extract", files={"file": ("cert.png", b"garbage", "image/png")}
            )
        assert response.status_code == 422
        assert response.json()["detail"] == VehicleOCRError.user_message
        assert fake_engine.calls == []

    def test_engine_unavailable(
        self, client: TestClient, make_engine, png_bytes: bytes
    ) -> None:
        engine = make_engine(error=EngineUnavailableError("Tesseract is not installed"))
        with _patch_processor(engine):
            response = client.post(
                "/extract", files={"file": ("cert.png", png_bytes, "image/png")}
            )
        assert response.status_code == 503
        assert response.json()["detail"] == VehicleOCRError.user_message

    def test_missing_file(self, client: TestClient) -> None:
        assert client.post("/extract").status_code == 422


class TestBatchEndpoint:
    """Tests for POST /extract/batch."""

    def test_batch_mixed(
        self, client: TestClient, fake_engine, png_bytes: bytes
    ) -> None:
        files = [
            ("files", ("a.png", png_bytes, "image/png")),
            ("files", ("b.png", b"junk", "image/png")),
        ]
        with _patch_processor(fake_engine):
            response = client.post("/extract/batch", files=files)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["total_documents"] == 2
        assert data["successful"] == 1
        assert data["failed"] == 1
        assert data["results"][0]["result"]["brand"] == "HONDA"
        assert data["results"][1]["error"] == VehicleOCRError.user_message
        assert "result" not in data["results"][1]
        assert "error" not in data["results"][0]

    def test_batch_omits_missing_fields(
        self, client: TestClient, make_engine, png_bytes: bytes
    ) -> None:
        engine = make_engine(text="Nhãn hiệu (Brand): HONDA")
        with _patch_processor(engine):
            response = client.post(
                "/extract/batch",
                files=[("files", ("a.png", png_bytes, "image/png"))],
            )
        result = response.json()["results"][0]["result"]
        assert result["brand"] == "HONDA"
        assert "ownerName" not in result
        assert "vin" not in result
        assert result["rawText"] == "Nhãn hiệu (Brand): HONDA"


class TestFieldsEndpoint:
    """Tests for GET /fields."""

    def test_lists_fields(self, client: TestClient, fake_engine) -> None:
        with _patch_processor(fake_engine):
            response = client.get("/fields")
        assert response.status_code == 200
        fields = response.json()["fields"]
        assert [f["name"] for f in fields] == [
            "vin",
            "engine_number",
            "license_plate",
            "brand",
            "color",
            "owner_name",
            "address",
            "registration_date",
        ]
        assert fields[0]["rules"][0] == {"name": "chassis_label_vi", "anchored": True}


class TestServerEntryPoint:
    """Tests for the uvicorn launcher."""

    @patch("vehicle_ocr.main.setup_logging")
    @patch("vehicle_ocr.main.uvicorn")
    def test_runs_on_configured_address(
        self, mock_uvicorn: MagicMock, _mock_logging: MagicMock
    ) -> None:
        from vehicle_ocr.main import main

        main()

        mock_uvicorn.run.assert_called_once()
        _, kwargs = mock_uvicorn.run.call_args
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 8000
