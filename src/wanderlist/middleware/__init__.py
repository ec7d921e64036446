"""Middleware registration."""

from fastapi import FastAPI

from wanderlist.config import Settings
from wanderlist.middleware.cors import setup_cors
from wanderlist.middleware.error_handler import setup_error_handlers
from wanderlist.middleware.logging import setup_logging
from wanderlist.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Wire the middleware stack onto ``app``.

    Starlette runs the last-added middleware outermost; CORS goes last so
    error responses still carry the CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
