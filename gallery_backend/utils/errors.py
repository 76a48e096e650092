"""
API error types for Gallery API

Each error carries the HTTP status code it maps to. Domain operations raise
them; Lambda handlers turn them into JSON error responses.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that map to an HTTP error response."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ApiError):
    status_code = 400
    error = "Bad Request"


class ValidationError(BadRequest):
    """A request field failed schema validation."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class MalformedCursor(BadRequest):
    """The pagination nextKey could not be decoded."""


class Unauthorized(ApiError):
    status_code = 401
    error = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    error = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    error = "Not Found"


class InternalError(ApiError):
    status_code = 500
    error = "Internal Server Error"
