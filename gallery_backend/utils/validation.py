"""
Request validation utilities for Gallery API

Provides functions to extract data from API Gateway events and to validate
request bodies against closed schemas: unknown fields are rejected.
"""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Iterable
from urllib.parse import unquote

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
except ImportError:
    # Local development
    import gallery_backend.config as config

from .access import VISIBILITIES
from .errors import BadRequest, ValidationError

logger = logging.getLogger()


def get_path_param(event: dict, param: str) -> str:
    """
    Extract and URL-decode a path parameter from API Gateway event.

    Raises:
        ValidationError: If the parameter is missing
    """
    path_params = event.get("pathParameters") or {}
    if not path_params.get(param):
        logger.warning(f"Missing {param} in path parameters")
        raise ValidationError(param, f"{param} is required in path")
    return unquote(path_params[param])


def get_query_param(event: dict, param: str) -> str | None:
    """Return a query string parameter, or None if absent."""
    query_params = event.get("queryStringParameters") or {}
    value = query_params.get(param)
    return unquote(value) if value else None


def parse_json_body(event: dict, default: Any = None) -> Any:
    """
    Parse JSON body from API Gateway event.

    Args:
        event: API Gateway event
        default: Value returned when the event has no body ({} if not given)

    Raises:
        BadRequest: If the body is not valid JSON
    """
    body = event.get("body")
    if not body:
        return {} if default is None else default

    if event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            raise BadRequest("Invalid request body encoding") from None

    try:
        return json.loads(body)
    except json.JSONDecodeError:
        logger.warning("Invalid JSON in request body")
        raise BadRequest("Invalid JSON in request body") from None


def reject_unknown_fields(body: dict, allowed: Iterable[str]) -> None:
    """Closed schema check: fail on the first field not in allowed."""
    allowed = set(allowed)
    for field in body:
        if field not in allowed:
            raise ValidationError(field, f'Field "{field}" is not allowed')


def validate_object(body: Any, name: str = "body") -> dict:
    if not isinstance(body, dict):
        raise ValidationError(name, f"{name} must be a JSON object")
    return body


def validate_string_field(
    body: dict,
    field: str,
    min_length: int = 1,
    max_length: int = config.MAX_STRING_LENGTH,
    required: bool = False,
) -> str | None:
    """
    Validate a string field in request body.

    Args:
        body: Request body dictionary
        field: Field name to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length
        required: Whether the field is required

    Returns:
        str: The value, or None when an optional field is absent
    """
    if field not in body:
        if required:
            raise ValidationError(field, f'Field "{field}" is required')
        return None

    value = body[field]
    if not isinstance(value, str):
        raise ValidationError(field, f'Field "{field}" must be a string')

    if len(value) < min_length:
        if min_length == 1:
            raise ValidationError(field, f'Field "{field}" cannot be empty')
        raise ValidationError(field, f'Field "{field}" must be at least {min_length} characters')

    if len(value) > max_length:
        raise ValidationError(field, f'Field "{field}" exceeds maximum length of {max_length}')

    return value


def validate_id_field(body: dict, field: str, required: bool = False) -> str | None:
    """Validate an albumId/artId field (fixed uuid length)."""
    return validate_string_field(
        body, field, min_length=config.UUID_LENGTH, max_length=config.UUID_LENGTH, required=required
    )


def validate_boolean_field(body: dict, field: str) -> bool | None:
    if field in body and not isinstance(body[field], bool):
        raise ValidationError(field, f'Field "{field}" must be a boolean')
    return body.get(field)


def validate_visibility_field(body: dict, required: bool = False) -> str | None:
    if "visibility" not in body:
        if required:
            raise ValidationError("visibility", 'Field "visibility" is required')
        return None
    if body["visibility"] not in VISIBILITIES:
        raise ValidationError(
            "visibility", f'Field "visibility" must be one of: {", ".join(VISIBILITIES)}'
        )
    return body["visibility"]


def _validate_array(body: Any, name: str) -> list:
    if not isinstance(body, list) or not body:
        raise ValidationError(name, f"{name} must be a non-empty array")
    if len(body) > config.MAX_BATCH_SIZE:
        raise ValidationError(name, f"{name} exceeds maximum of {config.MAX_BATCH_SIZE} items")
    return body


def _reject_duplicates(items: list[dict], name: str) -> None:
    seen = []
    for item in items:
        if item in seen:
            raise ValidationError(name, f"{name} must not contain duplicate items")
        seen.append(item)


def validate_add_album(body: Any) -> dict:
    """Schema: {visibility, title, description}, all required."""
    body = validate_object(body)
    reject_unknown_fields(body, ("visibility", "title", "description"))
    return {
        "visibility": validate_visibility_field(body, required=True),
        "title": validate_string_field(body, "title", required=True),
        "description": validate_string_field(body, "description", required=True),
    }


def validate_edit_album(body: Any, path_album_id: str | None = None) -> dict:
    """
    Schema: {albumId, visibility?, title?, description?, genUploadUrl?}.

    The albumId path parameter fills in a missing body albumId and must match
    it when both are given.
    """
    body = dict(validate_object(body))
    reject_unknown_fields(body, ("albumId", "visibility", "title", "description", "genUploadUrl"))

    if path_album_id is not None:
        if "albumId" not in body:
            body["albumId"] = path_album_id
        elif body["albumId"] != path_album_id:
            raise ValidationError("albumId", "albumId in body does not match the path")

    params = {"albumId": validate_id_field(body, "albumId", required=True)}
    visibility = validate_visibility_field(body)
    if visibility is not None:
        params["visibility"] = visibility
    for field in ("title", "description"):
        value = validate_string_field(body, field)
        if value is not None:
            params[field] = value
    params["genUploadUrl"] = bool(validate_boolean_field(body, "genUploadUrl"))
    return params


def validate_delete_album(body: Any) -> dict:
    """Schema: {albumId}."""
    body = validate_object(body)
    reject_unknown_fields(body, ("albumId",))
    return {"albumId": validate_id_field(body, "albumId", required=True)}


def validate_put_arts(body: Any) -> list[dict]:
    """Schema: [{albumId, artId?, title?, description?, genUploadUrl?}, ...]."""
    items = _validate_array(body, "arts")
    arts = []
    for item in items:
        item = validate_object(item, "art")
        reject_unknown_fields(item, ("albumId", "artId", "title", "description", "genUploadUrl"))
        art = {"albumId": validate_id_field(item, "albumId", required=True)}
        art_id = validate_id_field(item, "artId")
        if art_id is not None:
            art["artId"] = art_id
        for field in ("title", "description"):
            value = validate_string_field(item, field)
            if value is not None:
                art[field] = value
        art["genUploadUrl"] = bool(validate_boolean_field(item, "genUploadUrl"))
        arts.append(art)

    _reject_duplicates(items, "arts")
    art_ids = [art["artId"] for art in arts if "artId" in art]
    if len(art_ids) != len(set(art_ids)):
        raise ValidationError("arts", "arts must not contain the same artId more than once")
    return arts


def validate_delete_arts(body: Any) -> list[dict]:
    """Schema: [{albumId, artId}, ...]."""
    items = _validate_array(body, "arts")
    arts = []
    for item in items:
        item = validate_object(item, "art")
        reject_unknown_fields(item, ("albumId", "artId"))
        arts.append({
            "albumId": validate_id_field(item, "albumId", required=True),
            "artId": validate_id_field(item, "artId", required=True),
        })

    _reject_duplicates(arts, "arts")
    return arts
