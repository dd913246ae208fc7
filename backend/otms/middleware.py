from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from otms.config import Settings

# Dev auth travels in these headers; browsers must be allowed to send them.
AUTH_HEADERS = ["X-User-Id", "X-Roles"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure CORS for the web client."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", *AUTH_HEADERS],
    )
