"""Entry point for running the FastAPI application.

Run from the repository root: ``python -m backend.main``.
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

from backend.src.services.config import get_config  # noqa: E402

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = get_config()

    uvicorn.run(
        "backend.src.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=os.getenv("RELOAD", "false").lower() in {"1", "true", "yes"},
    )
