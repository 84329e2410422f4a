"""Logging setup and request logging for API-tjenester."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response

logger = logging.getLogger("blog-service.requests")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at process start."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def setup_request_logging(app: FastAPI) -> None:
    """Log method and path of every incoming request."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        logger.info(f"Incoming request: {request.method} {request.url.path}")
        logger.debug(f"Origin: {request.headers.get('origin')}")
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
        return response
