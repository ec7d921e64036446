"""Cross-origin access for the web client."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wanderlist.config import Settings
from wanderlist.middleware.request_id import REQUEST_ID_HEADER

# Every verb the routers expose, plus the preflight.
API_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Let the configured web origins call the API with a bearer token."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=API_METHODS,
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
