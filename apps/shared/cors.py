"""Sentralisert CORS-konfigurasjon for alle backend-tjenester."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from apps.shared.config import Settings
from apps.shared.errors import error_response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


def is_origin_allowed(origin: str | None, allowed_origins: list[str]) -> bool:
    """
    Exact match, the same comparison CORSMiddleware makes.

    Requests without an Origin header (server-to-server) are always allowed.
    """
    if not origin:
        return True
    return origin in allowed_origins


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """
    Legg til CORS-middleware på en FastAPI-app.

    Origins outside the allow-list are rejected with 403 before any route runs.
    """
    allowed_origins = list(settings.allowed_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    # Added last so it wraps the CORS middleware and sees the request first
    @app.middleware("http")
    async def reject_disallowed_origins(request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if not is_origin_allowed(origin, allowed_origins):
            logger.error(f"CORS blocked origin: {origin}")
            return error_response(
                message="Not allowed by CORS",
                category="security",
                status_code=status.HTTP_403_FORBIDDEN,
            )
        return await call_next(request)
