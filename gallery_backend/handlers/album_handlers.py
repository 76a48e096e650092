"""
Lambda handlers for album operations (list, get, add, edit, delete)

Public routes accept anonymous callers; /album/my routes require a bearer token.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from services import album_service
    from utils.auth import authenticate
    from utils.errors import ApiError
    from utils.pagination import validate_pagination_params
    from utils.response import api_error_response, error_response, item_response, items_response
    from utils.validation import (
        get_path_param,
        get_query_param,
        parse_json_body,
        validate_add_album,
        validate_delete_album,
        validate_edit_album,
    )
except ImportError:
    # Local development
    from gallery_backend.services import album_service
    from gallery_backend.utils.auth import authenticate
    from gallery_backend.utils.errors import ApiError
    from gallery_backend.utils.pagination import validate_pagination_params
    from gallery_backend.utils.response import api_error_response, error_response, item_response, items_response
    from gallery_backend.utils.validation import (
        get_path_param,
        get_query_param,
        parse_json_body,
        validate_add_album,
        validate_delete_album,
        validate_edit_album,
    )

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def get_public_albums_handler(event, context):
    """
    Lambda handler for GET /album/public.
    Lists public albums, most recent first, with optional limit/nextKey pagination.
    """
    logger.info("get_public_albums_handler invoked")

    try:
        limit, start_key = validate_pagination_params(
            get_query_param(event, "limit"), get_query_param(event, "nextKey")
        )
        albums, last_key = album_service.get_public_albums(limit, start_key)
        return items_response(200, albums, last_key)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error listing public albums: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to list albums")


def get_user_albums_handler(event, context):
    """
    Lambda handler for GET /album/my.
    Lists the caller's albums (public and private), most recent first.
    """
    logger.info("get_user_albums_handler invoked")

    try:
        ctx = authenticate(event)
        limit, start_key = validate_pagination_params(
            get_query_param(event, "limit"), get_query_param(event, "nextKey")
        )
        albums, last_key = album_service.get_user_albums(ctx.user_id, limit, start_key)
        return items_response(200, albums, last_key)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error listing user albums: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to list albums")


def get_album_handler(event, context):
    """
    Lambda handler for GET /album/{albumId}.
    Returns a public album to anyone and a private album to its owner only.
    """
    logger.info("get_album_handler invoked")

    try:
        ctx = authenticate(event, required=False)
        album_id = get_path_param(event, "albumId")
        album = album_service.get_album(ctx.user_id, album_id)
        return item_response(200, album)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error getting album: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to get album")


def add_album_handler(event, context):
    """
    Lambda handler for PUT/POST /album/my.
    Creates an album and returns it with a presigned cover uploadUrl.
    """
    logger.info("add_album_handler invoked")

    try:
        ctx = authenticate(event)
        params = validate_add_album(parse_json_body(event))
        album = album_service.add_album(ctx.user_id, params)
        return item_response(201, album)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error adding album: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to add album")


def edit_album_handler(event, context):
    """
    Lambda handler for PATCH /album/my/{albumId}.
    Applies a partial update; genUploadUrl=true also returns a new cover uploadUrl.
    """
    logger.info("edit_album_handler invoked")

    try:
        ctx = authenticate(event)
        path_params = event.get("pathParameters") or {}
        path_album_id = get_path_param(event, "albumId") if path_params.get("albumId") else None
        params = validate_edit_album(parse_json_body(event), path_album_id)
        album = album_service.edit_album(ctx.user_id, params)
        return item_response(200, album)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error editing album: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to edit album")


def delete_album_handler(event, context):
    """
    Lambda handler for DELETE /album/my.
    Deletes the album record; arts and images are cleaned up by the stream handlers.
    """
    logger.info("delete_album_handler invoked")

    try:
        ctx = authenticate(event)
        params = validate_delete_album(parse_json_body(event))
        deleted = album_service.delete_album(ctx.user_id, params)
        return item_response(200, deleted)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error deleting album: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to delete album")
