"""
Art operations for Gallery API

Arts live in the Art table keyed by (albumId, artId); ART_SEQUENCE_INDEX
(albumId + sequenceNum) gives the display order inside an album. An art is
never owned on its own: every check goes through its parent album.
"""

from __future__ import annotations

import logging
import uuid

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
    from services.album_service import album_ownership, now_iso, query_album
    from utils.access import PUBLIC
    from utils.dynamodb import batch_delete, batch_put, strip_user_id
    from utils.errors import BadRequest, Forbidden, NotFound
    from utils.file_store import art_image_key, download_url, upload_url
    from utils.pagination import query_page
except ImportError:
    # Local development
    import gallery_backend.config as config
    from gallery_backend.services.album_service import album_ownership, now_iso, query_album
    from gallery_backend.utils.access import PUBLIC
    from gallery_backend.utils.dynamodb import batch_delete, batch_put, strip_user_id
    from gallery_backend.utils.errors import BadRequest, Forbidden, NotFound
    from gallery_backend.utils.file_store import art_image_key, download_url, upload_url
    from gallery_backend.utils.pagination import query_page

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _prep_art_response(art: dict) -> dict:
    item = strip_user_id(art)
    item["imgUrl"] = download_url(art_image_key(art["albumId"], art["artId"]))
    return item


def _query_album_arts(
    album_id: str, limit: int | None, start_key: dict | None
) -> tuple[list[dict], dict | None]:
    items, last_key = query_page(
        config.art_table,
        limit=limit,
        start_key=start_key,
        IndexName=config.ART_SEQUENCE_INDEX,
        KeyConditionExpression="albumId = :albumId",
        ExpressionAttributeValues={":albumId": album_id},
        ScanIndexForward=True,
    )
    logger.info(f"Retrieved {len(items)} arts of album {album_id}")
    return [_prep_art_response(item) for item in items], last_key


def get_public_album_arts(
    album_id: str, limit: int | None = None, start_key: dict | None = None
) -> tuple[list[dict], dict | None]:
    """
    Get one page of arts of a public album, in sequence order.

    Raises:
        NotFound: If the album does not exist
        Forbidden: If the album is private
    """
    album = query_album(album_id)
    if album.get("visibility") != PUBLIC:
        raise Forbidden("Unauthorized.")
    return _query_album_arts(album_id, limit, start_key)


def get_user_album_arts(
    user_id: str, album_id: str, limit: int | None = None, start_key: dict | None = None
) -> tuple[list[dict], dict | None]:
    """Get one page of arts of an album the caller owns, in sequence order."""
    album_ownership(user_id, album_id)
    return _query_album_arts(album_id, limit, start_key)


def get_art(album_id: str, art_id: str) -> dict:
    """
    Get one art item.

    Raises:
        NotFound: If the art does not exist
    """
    response = config.art_table.get_item(Key={"albumId": album_id, "artId": art_id})
    if "Item" not in response:
        logger.warning(f"Art not found: {album_id}/{art_id}")
        raise NotFound("This art item doesn't exists.")
    return response["Item"]


def same_album(album_ids: list[str]) -> str:
    """
    Return the shared album id of a batch.

    Raises:
        BadRequest: If the items reference more than one album
    """
    if any(album_id != album_ids[0] for album_id in album_ids):
        raise BadRequest("The arts items don't belong to the same album")
    return album_ids[0]


def _new_art(user_id: str, params: dict, sequence_num: int) -> tuple[dict, str]:
    if not params.get("title") or not params.get("description"):
        raise BadRequest("Title and description are mandatory for new art items.")

    art_id = str(uuid.uuid4())
    key = art_image_key(params["albumId"], art_id)
    art = {
        "albumId": params["albumId"],
        "artId": art_id,
        "sequenceNum": sequence_num,
        "userId": user_id,
        "creationDate": now_iso(),
        "title": params["title"],
        "description": params["description"],
        "imgUrl": download_url(key),
    }
    return art, upload_url(key)


def _edited_art(params: dict, sequence_num: int) -> tuple[dict, str | None]:
    art = get_art(params["albumId"], params["artId"])
    art = {**art, **{k: params[k] for k in ("title", "description") if k in params}}
    art["sequenceNum"] = sequence_num

    upload = None
    if params.get("genUploadUrl"):
        key = art_image_key(art["albumId"], art["artId"])
        art["imgUrl"] = download_url(key)
        upload = upload_url(key)
    return art, upload


def put_arts(user_id: str, arts_params: list[dict]) -> list[dict]:
    """
    Create and/or update a batch of arts of one album owned by the caller.

    Items without artId are new; every item gets sequenceNum equal to its
    position in the batch. All items are written in one batch write, after
    every check has passed.

    Args:
        user_id: Caller user id
        arts_params: Validated art items

    Returns:
        list: Stored arts (without userId), with uploadUrl where one was generated
    """
    album_id = same_album([params["albumId"] for params in arts_params])
    album = album_ownership(user_id, album_id)

    arts = []
    upload_urls = []
    for sequence_num, params in enumerate(arts_params):
        if "artId" in params:
            art, upload = _edited_art(params, sequence_num)
        else:
            art, upload = _new_art(album["userId"], params, sequence_num)
        arts.append(art)
        upload_urls.append(upload)

    batch_put(config.art_table, arts)
    logger.info(f"Put {len(arts)} arts in album {album_id}")

    result = []
    for art, upload in zip(arts, upload_urls):
        item = strip_user_id(art)
        if upload:
            item["uploadUrl"] = upload
        result.append(item)
    return result


def delete_arts(user_id: str, arts_params: list[dict]) -> list[dict]:
    """
    Delete a batch of arts of one album owned by the caller.

    Images are removed asynchronously by the stream handlers.

    Returns:
        list: The deleted {albumId, artId} keys
    """
    album_id = same_album([params["albumId"] for params in arts_params])
    album_ownership(user_id, album_id)

    keys = [{"albumId": params["albumId"], "artId": params["artId"]} for params in arts_params]
    for key in keys:
        get_art(key["albumId"], key["artId"])

    batch_delete(config.art_table, keys)
    logger.info(f"Deleted {len(keys)} arts from album {album_id}")
    return keys
