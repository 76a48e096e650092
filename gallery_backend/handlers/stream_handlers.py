"""
Lambda handlers for DynamoDB stream processing (cascade delete)

These handlers react to REMOVE events of the Album and Art tables. Records
that fail are reported through batchItemFailures so the event source mapping
retries only those; re-processing a record is harmless.
"""

from __future__ import annotations

import logging

from boto3.dynamodb.types import TypeDeserializer

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from services import cleanup_service
except ImportError:
    # Local development
    from gallery_backend.services import cleanup_service

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_deserializer = TypeDeserializer()


def _parse_stream_record(record: dict) -> tuple[str | None, dict]:
    """
    Extract event name and deserialized primary key from a stream record.

    Returns:
        tuple: (event_name, keys)
    """
    raw_keys = record.get("dynamodb", {}).get("Keys", {})
    keys = {name: _deserializer.deserialize(value) for name, value in raw_keys.items()}
    return record.get("eventName"), keys


def _failure(record: dict) -> dict:
    return {"itemIdentifier": record.get("dynamodb", {}).get("SequenceNumber")}


def delete_album_arts_handler(event, context):
    """
    Triggered by the Album table stream.
    Deletes all art records of every removed album.
    """
    failures = []
    for record in event.get("Records", []):
        event_name, keys = _parse_stream_record(record)
        if event_name != "REMOVE":
            continue

        album_id = keys.get("albumId")
        if cleanup_service.classify_keys(keys) != cleanup_service.ALBUM:
            logger.warning(f"Skipping non-album stream record: {keys}")
            continue

        try:
            deleted = cleanup_service.delete_album_arts(album_id)
            logger.info(f"Cascade deleted {deleted} arts of album {album_id}")
        except Exception as e:
            logger.error(f"Error deleting arts of album {album_id}: {str(e)}", exc_info=True)
            failures.append(_failure(record))

    return {"batchItemFailures": failures}


def delete_s3_objects_handler(event, context):
    """
    Triggered by the Album and Art table streams.
    Deletes the stored images of every removed album or art.
    """
    failures = []
    for record in event.get("Records", []):
        event_name, keys = _parse_stream_record(record)
        if event_name != "REMOVE":
            continue

        try:
            deleted = cleanup_service.delete_record_objects(keys)
            logger.info(f"Deleted {deleted} objects for removed record {keys}")
        except Exception as e:
            logger.error(f"Error deleting objects for {keys}: {str(e)}", exc_info=True)
            failures.append(_failure(record))

    return {"batchItemFailures": failures}
