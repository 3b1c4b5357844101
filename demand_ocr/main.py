"""Application entry point for the demand sheet OCR API server."""

import os

import uvicorn

from demand_ocr.api.app import app
from demand_ocr.utils.config import load_config
from demand_ocr.utils.logger import setup_logging


def main() -> None:
    """Start the FastAPI application server on ``$PORT`` (default 8000)."""
    config = load_config()
    setup_logging(config.log_level)
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))


if __name__ == "__main__":
    main()
