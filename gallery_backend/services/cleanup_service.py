"""
Cascade cleanup after records are removed from the Album and Art tables

Driven by DynamoDB stream REMOVE events. Every operation is idempotent:
processing the same event twice, or events out of order, deletes nothing the
second time and does not fail.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
    from utils.dynamodb import batch_delete
    from utils.file_store import album_prefix, art_image_key, delete_object, delete_prefix
except ImportError:
    # Local development
    import gallery_backend.config as config
    from gallery_backend.utils.dynamodb import batch_delete
    from gallery_backend.utils.file_store import album_prefix, art_image_key, delete_object, delete_prefix

logger = logging.getLogger()
logger.setLevel(logging.INFO)

ALBUM = "album"
ART = "art"


def classify_keys(keys: dict) -> str | None:
    """
    Tell album keys from art keys.

    A key with an artId is an art; one with only an albumId is an album.
    """
    if keys.get("albumId") and keys.get("artId"):
        return ART
    if keys.get("albumId"):
        return ALBUM
    return None


def delete_album_arts(album_id: str) -> int:
    """
    Delete every art record of an album.

    Returns:
        int: Number of arts deleted (0 if the album was already empty)
    """
    keys = []
    query = {
        "KeyConditionExpression": "albumId = :albumId",
        "ExpressionAttributeValues": {":albumId": album_id},
        "ProjectionExpression": "albumId, artId",
    }
    response = config.art_table.query(**query)
    keys.extend(response.get("Items", []))
    while "LastEvaluatedKey" in response:
        response = config.art_table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **query)
        keys.extend(response.get("Items", []))

    if keys:
        batch_delete(config.art_table, [{"albumId": k["albumId"], "artId": k["artId"]} for k in keys])
        logger.info(f"Deleted {len(keys)} arts of removed album {album_id}")
    else:
        logger.info(f"Album {album_id} has no arts left")
    return len(keys)


def delete_record_objects(keys: dict) -> int:
    """
    Delete the stored images of a removed album or art record.

    An album removes its whole folder (cover and art images), an art its image.

    Returns:
        int: Number of objects deleted
    """
    kind = classify_keys(keys)
    if kind == ALBUM:
        return delete_prefix(album_prefix(keys["albumId"]))
    if kind == ART:
        delete_object(art_image_key(keys["albumId"], keys["artId"]))
        return 1

    logger.warning(f"Ignoring stream record with unknown keys: {keys}")
    return 0
