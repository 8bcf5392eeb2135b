"""Middleware and exception-handler wiring for the Ascend API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ascend.config import Settings
from ascend.middleware.error_handler import setup_error_handlers
from ascend.middleware.logging import setup_logging
from ascend.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware

_ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_ALLOWED_HEADERS = ["Authorization", "Content-Type", REQUEST_ID_HEADER]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers, request ids and CORS.

    Starlette runs the last-added middleware outermost; CORS is added last so
    its headers are present on error responses as well.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    # Credentials stay on: the web client authenticates with the session cookie.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=_ALLOWED_METHODS,
        allow_headers=_ALLOWED_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
    )
