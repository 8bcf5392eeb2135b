"""Domain exceptions rendered as ``{"detail": message}`` by the global handler."""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AppError):  # noqa: N818
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(AppError):  # noqa: N818
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(AppError):  # noqa: N818
    status_code = 403
    default_message = "Forbidden"


class NotFound(AppError):  # noqa: N818
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):  # noqa: N818
    status_code = 409
    default_message = "Conflict"


class RateLimited(AppError):  # noqa: N818
    status_code = 429
    default_message = "Too many requests"


class UpstreamError(AppError):  # noqa: N818
    """The roadmap generator could not produce a usable plan."""

    status_code = 502
    default_message = "AI roadmap generation failed. Please try again."
