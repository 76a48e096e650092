"""
Pagination utilities for Gallery API

The nextKey handed to clients is the DynamoDB LastEvaluatedKey serialized as
JSON and percent-encoded, so it can be sent back verbatim in a query string.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any
from urllib.parse import quote, unquote

from botocore.exceptions import ClientError

from .dynamodb import convert_decimal
from .errors import MalformedCursor, ValidationError


def encode_next_key(last_evaluated_key: dict | None) -> str | None:
    """
    Encode the last evaluated key of a DynamoDB query.

    Args:
        last_evaluated_key: Key of the last item examined, or None

    Returns:
        str: URL-safe cursor, or None when there is no key
    """
    if not last_evaluated_key:
        return None
    return quote(json.dumps(last_evaluated_key, default=convert_decimal, sort_keys=True), safe="")


def decode_next_key(next_key: str | None) -> dict | None:
    """
    Decode a cursor produced by encode_next_key.

    Numbers come back as int or Decimal since boto3 refuses floats in keys.

    Raises:
        MalformedCursor: If the cursor is not a percent-encoded JSON object
    """
    if not next_key:
        return None
    try:
        key = json.loads(unquote(next_key), parse_float=Decimal)
    except ValueError:
        raise MalformedCursor("The pagination nextKey is malformed.") from None
    if not isinstance(key, dict) or not key:
        raise MalformedCursor("The pagination nextKey is malformed.")
    return key


def validate_limit_param(limit: str | int | None) -> int | None:
    """
    Validate the optional page size parameter.

    Returns:
        int: The page size, or None when no limit was given

    Raises:
        ValidationError: If the limit is not a positive integer
    """
    if limit is None or limit == "":
        return None
    try:
        value = int(limit)
    except (TypeError, ValueError):
        raise ValidationError("limit", "The pagination limit should be a positive number.") from None
    if value <= 0:
        raise ValidationError("limit", "The pagination limit should be a positive number.")
    return value


def validate_pagination_params(
    limit: str | None, next_key: str | None
) -> tuple[int | None, dict | None]:
    """Validate limit and nextKey query parameters together."""
    return validate_limit_param(limit), decode_next_key(next_key)


def query_page(
    table, limit: int | None = None, start_key: dict | None = None, **query: Any
) -> tuple[list[dict], dict | None]:
    """
    Run a single DynamoDB query page.

    Args:
        table: DynamoDB Table resource
        limit: Optional maximum number of items to evaluate
        start_key: Optional ExclusiveStartKey from a previous page
        **query: Remaining query parameters (IndexName, KeyConditionExpression, ...)

    Returns:
        tuple: (items, last_evaluated_key)

    Raises:
        MalformedCursor: If the store rejects start_key
    """
    params = dict(query)
    if limit is not None:
        params["Limit"] = limit
    if start_key is not None:
        params["ExclusiveStartKey"] = start_key

    try:
        response = table.query(**params)
    except ClientError as e:
        # A cursor that decodes but is not a key of this index
        if start_key is not None and e.response["Error"]["Code"] == "ValidationException":  # type: ignore[typeddict-item]
            raise MalformedCursor("The pagination nextKey is malformed.") from None
        raise
    return response.get("Items", []), response.get("LastEvaluatedKey")
