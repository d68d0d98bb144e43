"""Entry point for the vehicle registration OCR API server."""

import uvicorn

from vehicle_ocr.api.app import app
from vehicle_ocr.utils.config import load_config
from vehicle_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main() -> None:
    """Start the FastAPI application server on the configured address."""
    config = load_config()
    setup_logging(config.log_level)
    logger.info(
        "Starting API on %s:%d (languages: %s)",
        config.server.host,
        config.server.port,
        "+".join(config.ocr.languages),
    )
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
