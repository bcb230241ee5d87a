# run.py
"""Serve the portal with uvicorn: `python run.py`. HOST and PORT come from the environment."""
import logging
import os

import uvicorn

from app.config import settings

logger = logging.getLogger(__name__)


def server_options(environ=os.environ) -> dict:
    return {
        "host": environ.get("HOST", "0.0.0.0"),
        "port": int(environ.get("PORT", 8000)),
        "reload": settings.DEBUG,
        "log_level": "debug" if settings.DEBUG else "info",
    }


def main(environ=os.environ):
    options = server_options(environ)
    logger.info(f"🚀 Serving {settings.EVENT_NAME} portal on {options['host']}:{options['port']}")
    uvicorn.run("app.main:app", **options)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
