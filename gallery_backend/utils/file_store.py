"""
File store utilities for Gallery API

Object keys are always derived from entity IDs:
- album cover: "{albumId}/{albumId}"
- art image:   "{albumId}/arts/{artId}"

Presigned URLs are minted fresh on every call and never cached.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
except ImportError:
    # Local development
    import gallery_backend.config as config

from .errors import InternalError

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_CHUNK_SIZE = 1000


def album_prefix(album_id: str) -> str:
    """Folder holding an album cover and all of its art images."""
    return f"{album_id}/"


def album_cover_key(album_id: str) -> str:
    return f"{album_id}/{album_id}"


def art_image_key(album_id: str, art_id: str) -> str:
    return f"{album_id}/arts/{art_id}"


def download_url(object_key: str) -> str:
    """
    Generate a presigned GET URL for an object in the images bucket.

    Args:
        object_key: Derived object key

    Returns:
        str: URL valid for S3_SIGNED_URL_EXP seconds
    """
    return config.s3_client.generate_presigned_url(
        "get_object",
        Params={"Bucket": config.IMAGES_S3_BUCKET, "Key": object_key},
        ExpiresIn=config.S3_SIGNED_URL_EXP,
    )


def upload_url(object_key: str) -> str:
    """
    Generate a presigned PUT URL so the client uploads image bytes directly to S3.

    Args:
        object_key: Derived object key

    Returns:
        str: URL valid for S3_SIGNED_URL_EXP seconds
    """
    return config.s3_client.generate_presigned_url(
        "put_object",
        Params={"Bucket": config.IMAGES_S3_BUCKET, "Key": object_key},
        ExpiresIn=config.S3_SIGNED_URL_EXP,
    )


def delete_object(object_key: str) -> None:
    """Delete one object. Deleting a missing key succeeds."""
    logger.info(f"Deleting S3 object: s3://{config.IMAGES_S3_BUCKET}/{object_key}")
    config.s3_client.delete_object(Bucket=config.IMAGES_S3_BUCKET, Key=object_key)


def delete_prefix(prefix: str) -> int:
    """
    Delete every object under a key prefix.

    Args:
        prefix: Key prefix (e.g. an album folder)

    Returns:
        int: Number of objects deleted

    Raises:
        InternalError: If S3 reports a per-key deletion error
    """
    paginator = config.s3_client.get_paginator("list_objects_v2")
    keys = []
    for page in paginator.paginate(Bucket=config.IMAGES_S3_BUCKET, Prefix=prefix):
        for obj in page.get("Contents", []):
            keys.append(obj["Key"])

    for start in range(0, len(keys), DELETE_CHUNK_SIZE):
        chunk = keys[start:start + DELETE_CHUNK_SIZE]
        response = config.s3_client.delete_objects(
            Bucket=config.IMAGES_S3_BUCKET,
            Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
        )
        errors = response.get("Errors", [])
        if errors:
            logger.error(f"Failed to delete {len(errors)} objects under {prefix}: {errors}")
            raise InternalError(f"Failed to delete {len(errors)} objects under {prefix}")

    logger.info(f"Deleted {len(keys)} S3 objects under prefix: {prefix}")
    return len(keys)
