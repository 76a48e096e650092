"""
Lambda handlers for art operations (list, put, delete)

Every art request is scoped to a single album and checked against that album.
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from services import art_service
    from utils.auth import authenticate
    from utils.errors import ApiError
    from utils.pagination import validate_pagination_params
    from utils.response import api_error_response, error_response, items_response
    from utils.validation import (
        get_path_param,
        get_query_param,
        parse_json_body,
        validate_delete_arts,
        validate_put_arts,
    )
except ImportError:
    # Local development
    from gallery_backend.services import art_service
    from gallery_backend.utils.auth import authenticate
    from gallery_backend.utils.errors import ApiError
    from gallery_backend.utils.pagination import validate_pagination_params
    from gallery_backend.utils.response import api_error_response, error_response, items_response
    from gallery_backend.utils.validation import (
        get_path_param,
        get_query_param,
        parse_json_body,
        validate_delete_arts,
        validate_put_arts,
    )

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def get_public_album_arts_handler(event, context):
    """
    Lambda handler for GET /album/public/{albumId}.
    Lists the arts of a public album in sequence order.
    """
    logger.info("get_public_album_arts_handler invoked")

    try:
        album_id = get_path_param(event, "albumId")
        limit, start_key = validate_pagination_params(
            get_query_param(event, "limit"), get_query_param(event, "nextKey")
        )
        arts, last_key = art_service.get_public_album_arts(album_id, limit, start_key)
        return items_response(200, arts, last_key)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error listing public album arts: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to list arts")


def get_user_album_arts_handler(event, context):
    """
    Lambda handler for GET /album/my/{albumId}.
    Lists the arts of an album owned by the caller in sequence order.
    """
    logger.info("get_user_album_arts_handler invoked")

    try:
        ctx = authenticate(event)
        album_id = get_path_param(event, "albumId")
        limit, start_key = validate_pagination_params(
            get_query_param(event, "limit"), get_query_param(event, "nextKey")
        )
        arts, last_key = art_service.get_user_album_arts(ctx.user_id, album_id, limit, start_key)
        return items_response(200, arts, last_key)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error listing user album arts: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to list arts")


def put_arts_handler(event, context):
    """
    Lambda handler for PUT /art/my.
    Expects a JSON array of arts of one album: items without artId are created,
    the others updated. New items get a presigned image uploadUrl.
    """
    logger.info("put_arts_handler invoked")

    try:
        ctx = authenticate(event)
        arts_params = validate_put_arts(parse_json_body(event, default=[]))
        arts = art_service.put_arts(ctx.user_id, arts_params)
        return items_response(201, arts)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error putting arts: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to put arts")


def delete_arts_handler(event, context):
    """
    Lambda handler for DELETE /art/my.
    Expects a JSON array of {albumId, artId} of one album.
    """
    logger.info("delete_arts_handler invoked")

    try:
        ctx = authenticate(event)
        arts_params = validate_delete_arts(parse_json_body(event, default=[]))
        deleted = art_service.delete_arts(ctx.user_id, arts_params)
        return items_response(200, deleted)

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error deleting arts: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to delete arts")
