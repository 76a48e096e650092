"""
DynamoDB utilities for Gallery API

Provides functions for building DynamoDB update expressions, batch writes
and response shaping of stored items.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable


def convert_decimal(value: Any) -> Any:
    """
    Convert Decimal types (from DynamoDB) to int or float for JSON serialization.

    Used as the json.dumps default hook, so it only sees values the encoder
    cannot handle on its own.

    Args:
        value: Value that might be a Decimal

    Returns:
        Converted value (int if whole number, float otherwise)
    """
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def build_update_expression(
    fields: dict[str, Any], allow_remove: bool = False
) -> tuple[str, dict[str, Any], dict[str, str]]:
    """
    Build DynamoDB update expression from a dictionary of fields.

    Args:
        fields: Dictionary of field names to values
        allow_remove: If True, None values will REMOVE the attribute

    Returns:
        tuple: (update_expression, expression_attribute_values, expression_attribute_names)

    Example:
        fields = {"title": "Summer", "coverUrl": None}
        expr, values, names = build_update_expression(fields, allow_remove=True)
        # expr = "SET #title = :title REMOVE #coverUrl"
        # values = {":title": "Summer"}
        # names = {"#title": "title", "#coverUrl": "coverUrl"}
    """
    update_expr_parts = []
    remove_expr_parts = []
    expr_attr_values: dict[str, Any] = {}
    expr_attr_names: dict[str, str] = {}

    for field, value in fields.items():
        # Placeholders avoid clashes with reserved words such as "name"
        name_placeholder = f"#{field}"
        value_placeholder = f":{field}"

        expr_attr_names[name_placeholder] = field

        if allow_remove and value is None:
            remove_expr_parts.append(name_placeholder)
        else:
            update_expr_parts.append(f"{name_placeholder} = {value_placeholder}")
            expr_attr_values[value_placeholder] = value

    update_expression_parts = []
    if update_expr_parts:
        update_expression_parts.append("SET " + ", ".join(update_expr_parts))
    if remove_expr_parts:
        update_expression_parts.append("REMOVE " + ", ".join(remove_expr_parts))

    return " ".join(update_expression_parts), expr_attr_values, expr_attr_names


def build_update_params(
    key: Dict[str, Any],
    fields: Dict[str, Any],
    allow_remove: bool = False,
    condition_expression: str | None = None,
    return_values: str = "ALL_NEW"
) -> Dict[str, Any]:
    """
    Build complete DynamoDB update_item parameters.

    Args:
        key: Primary key for the item to update
        fields: Dictionary of field names to values
        allow_remove: If True, None values will REMOVE the attribute
        condition_expression: Optional condition expression
        return_values: Return values option (default: ALL_NEW)

    Returns:
        dict: Complete parameters for table.update_item()

    Example:
        params = build_update_params(
            key={"userId": "auth0|123", "albumId": "..."},
            fields={"title": "Summer"},
            condition_expression="attribute_exists(albumId)"
        )
        response = table.update_item(**params)
    """
    update_expression, expr_values, expr_names = build_update_expression(
        fields, allow_remove=allow_remove
    )

    params = {
        "Key": key,
        "UpdateExpression": update_expression,
        "ExpressionAttributeNames": expr_names,
        "ReturnValues": return_values,
    }

    # REMOVE-only operations have no values
    if expr_values:
        params["ExpressionAttributeValues"] = expr_values

    if condition_expression:
        params["ConditionExpression"] = condition_expression

    return params


def batch_put(table, items: Iterable[dict]) -> None:
    """
    Write items with one batch writer.

    boto3 splits the batch into 25-item requests and resubmits unprocessed items.
    """
    with table.batch_writer() as batch:
        for item in items:
            batch.put_item(Item=item)


def batch_delete(table, keys: Iterable[dict]) -> None:
    """Delete items by primary key with one batch writer."""
    with table.batch_writer() as batch:
        for key in keys:
            batch.delete_item(Key=key)


def strip_user_id(item: dict) -> dict:
    """Return a copy of a stored item without its owner userId."""
    return {k: v for k, v in item.items() if k != "userId"}


def strip_user_ids(items: Iterable[dict]) -> list[dict]:
    return [strip_user_id(item) for item in items]
