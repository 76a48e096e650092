"""
Album operations for Gallery API

Albums live in the Album table keyed by (userId, albumId). Secondary indexes:
- ALBUM_ID_INDEX: albumId, for lookups without knowing the owner
- ALBUM_VISIBILITY_INDEX: visibility + creationDate, for the public listing
- ALBUM_USER_INDEX: userId + creationDate, for the owner listing
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from botocore.exceptions import ClientError

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
    from services.user_service import get_user
    from utils.access import PUBLIC, require_album_read, require_album_write
    from utils.dynamodb import build_update_params, strip_user_id
    from utils.errors import Forbidden, NotFound
    from utils.file_store import album_cover_key, download_url, upload_url
    from utils.pagination import query_page
except ImportError:
    # Local development
    import gallery_backend.config as config
    from gallery_backend.services.user_service import get_user
    from gallery_backend.utils.access import PUBLIC, require_album_read, require_album_write
    from gallery_backend.utils.dynamodb import build_update_params, strip_user_id
    from gallery_backend.utils.errors import Forbidden, NotFound
    from gallery_backend.utils.file_store import album_cover_key, download_url, upload_url
    from gallery_backend.utils.pagination import query_page

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _prep_album_response(album: dict) -> dict:
    """Drop the owner id and mint a fresh cover download URL."""
    item = strip_user_id(album)
    item["coverUrl"] = download_url(album_cover_key(album["albumId"]))
    return item


def get_public_albums(limit: int | None = None, start_key: dict | None = None) -> tuple[list[dict], dict | None]:
    """
    Get one page of public albums, most recent first.

    Returns:
        tuple: (albums, last_evaluated_key)
    """
    items, last_key = query_page(
        config.album_table,
        limit=limit,
        start_key=start_key,
        IndexName=config.ALBUM_VISIBILITY_INDEX,
        KeyConditionExpression="visibility = :visibility",
        ExpressionAttributeValues={":visibility": PUBLIC},
        ScanIndexForward=False,
    )
    logger.info(f"Retrieved {len(items)} public albums")
    return [_prep_album_response(item) for item in items], last_key


def get_user_albums(
    user_id: str, limit: int | None = None, start_key: dict | None = None
) -> tuple[list[dict], dict | None]:
    """
    Get one page of the caller's albums regardless of visibility, most recent first.

    Returns:
        tuple: (albums, last_evaluated_key)
    """
    items, last_key = query_page(
        config.album_table,
        limit=limit,
        start_key=start_key,
        IndexName=config.ALBUM_USER_INDEX,
        KeyConditionExpression="userId = :userId",
        ExpressionAttributeValues={":userId": user_id},
        ScanIndexForward=False,
    )
    logger.info(f"Retrieved {len(items)} albums for user {user_id}")
    return [_prep_album_response(item) for item in items], last_key


def query_album(album_id: str) -> dict:
    """
    Look up an album by id through the albumId index.

    Album ids are unique, so the index yields at most one record.

    Raises:
        NotFound: If the album does not exist
    """
    response = config.album_table.query(
        IndexName=config.ALBUM_ID_INDEX,
        KeyConditionExpression="albumId = :albumId",
        ExpressionAttributeValues={":albumId": album_id},
        Limit=1,
    )
    items = response.get("Items", [])
    if not items:
        logger.warning(f"Album not found: {album_id}")
        raise NotFound("This album item doesn't exists.")
    return items[0]


def get_album(user_id: str | None, album_id: str) -> dict:
    """
    Get one album if the caller may read it.

    Existence is checked before visibility, so a private album answers
    Forbidden rather than NotFound to other users.
    """
    album = query_album(album_id)
    require_album_read(user_id, album)
    return _prep_album_response(album)


def album_ownership(user_id: str, album_id: str) -> dict:
    """
    Get an album that the caller owns.

    Raises:
        NotFound: If the album does not exist
        Forbidden: If the caller is not the owner
    """
    album = query_album(album_id)
    require_album_write(user_id, album)
    return album


def add_album(user_id: str, params: dict) -> dict:
    """
    Create an album owned by the caller.

    The caller must have a user profile (PUT /user) first.

    Args:
        user_id: Owner user id
        params: Validated {visibility, title, description}

    Returns:
        dict: The new album (without userId) plus its cover uploadUrl
    """
    user = get_user(user_id)
    if not user:
        logger.warning(f"User {user_id} has no profile, refusing to create album")
        raise Forbidden("The user profile must be registered before creating albums.")

    album_id = str(uuid.uuid4())
    cover_key = album_cover_key(album_id)

    album = {
        "userId": user_id,
        "albumId": album_id,
        "ownerName": user.get("name") or user.get("nickname") or "",
        "creationDate": now_iso(),
        "visibility": params["visibility"],
        "title": params["title"],
        "description": params["description"],
        "coverUrl": download_url(cover_key),
    }
    config.album_table.put_item(Item=album)
    logger.info(f"Added album {album_id} for user {user_id}")

    return {**strip_user_id(album), "uploadUrl": upload_url(cover_key)}


def edit_album(user_id: str, params: dict) -> dict:
    """
    Apply a partial update to an album the caller owns.

    Args:
        user_id: Caller user id
        params: Validated {albumId, visibility?, title?, description?, genUploadUrl}

    Returns:
        dict: The merged album (without userId), with uploadUrl when
        genUploadUrl was requested
    """
    album = album_ownership(user_id, params["albumId"])

    fields = {k: params[k] for k in ("visibility", "title", "description") if k in params}
    upload = None
    if params.get("genUploadUrl"):
        cover_key = album_cover_key(album["albumId"])
        fields["coverUrl"] = download_url(cover_key)
        upload = upload_url(cover_key)

    if fields:
        update_params = build_update_params(
            key={"userId": album["userId"], "albumId": album["albumId"]},
            fields=fields,
            condition_expression="attribute_exists(albumId)",
        )
        try:
            album = config.album_table.update_item(**update_params)["Attributes"]
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":  # type: ignore[typeddict-item]
                # Deleted between the ownership check and the update
                raise NotFound("This album item doesn't exists.") from None
            raise
        logger.info(f"Edited album {album['albumId']} fields: {list(fields.keys())}")

    result = strip_user_id(album)
    if upload:
        result["uploadUrl"] = upload
    return result


def delete_album(user_id: str, params: dict) -> dict:
    """
    Delete an album the caller owns.

    Arts and stored images are removed asynchronously by the stream handlers.

    Returns:
        dict: {albumId}
    """
    album = album_ownership(user_id, params["albumId"])
    config.album_table.delete_item(Key={"userId": album["userId"], "albumId": album["albumId"]})
    logger.info(f"Deleted album {album['albumId']}")
    return {"albumId": album["albumId"]}
