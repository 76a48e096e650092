"""
Response building utilities for Gallery API

Provides functions to create standardized API Gateway responses.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .dynamodb import convert_decimal
from .errors import ApiError
from .pagination import encode_next_key

logger = logging.getLogger()


def api_response(status_code: int, body: Any) -> dict:
    """
    Helper to format API Gateway response with CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)

    Returns:
        dict: API Gateway response with headers
    """
    return {
        "statusCode": status_code,
        "body": json.dumps(body, default=convert_decimal),
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Credentials": "true",
        },
    }


def error_response(status_code: int, error: str, message: str) -> dict:
    """
    Helper to create error response.

    Args:
        status_code: HTTP status code
        error: Error type/category
        message: Human readable error message

    Returns:
        dict: API Gateway error response
    """
    return api_response(status_code, {"error": error, "message": message})


def item_response(status_code: int, item: Any) -> dict:
    """Wrap a single entity in the ``{"item": ...}`` envelope."""
    return api_response(status_code, {"item": item})


def items_response(status_code: int, items: list, last_evaluated_key: dict | None = None) -> dict:
    """
    Wrap a page of entities in the ``{"items": [...], "nextKey": ...}`` envelope.

    nextKey is omitted once the underlying query is exhausted.
    """
    body: dict[str, Any] = {"items": items}
    next_key = encode_next_key(last_evaluated_key)
    if next_key:
        body["nextKey"] = next_key
    return api_response(status_code, body)


def http_log_level(status_code: int) -> int:
    """
    Pick the log level for a response status code.

    401 and 403 are logged as CRITICAL since they may be intrusion attempts.
    """
    if status_code in (401, 403):
        return logging.CRITICAL
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def api_error_response(error: ApiError) -> dict:
    """Log an API error at the level its status deserves and build its response."""
    logger.log(http_log_level(error.status_code), f"{error.status_code} {error.error}: {error.message}")
    return error_response(error.status_code, error.error, error.message)
