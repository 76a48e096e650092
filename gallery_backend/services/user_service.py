"""
User profile operations for Gallery API
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
    from utils.dynamodb import build_update_params
    from utils.errors import Unauthorized
    from utils.identity import fetch_user_info, map_user_profile
except ImportError:
    # Local development
    import gallery_backend.config as config
    from gallery_backend.utils.dynamodb import build_update_params
    from gallery_backend.utils.errors import Unauthorized
    from gallery_backend.utils.identity import fetch_user_info, map_user_profile

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def get_user(user_id: str) -> dict | None:
    """Get a user profile, or None if the user never registered."""
    response = config.user_table.get_item(Key={"userId": user_id})
    return response.get("Item")


def put_user_info(user_id: str, access_token: str) -> dict:
    """
    Create or refresh the caller's profile from the identity provider.

    Args:
        user_id: Authenticated caller id
        access_token: The caller's bearer token

    Returns:
        dict: The stored user item

    Raises:
        Unauthorized: If the profile belongs to another subject
    """
    user_info = fetch_user_info(access_token)
    if user_info["sub"] != user_id:
        logger.critical(f"Profile subject {user_info['sub']} does not match caller {user_id}")
        raise Unauthorized("Invalid token.")
    profile = map_user_profile(user_info)

    if get_user(user_id):
        update_params = build_update_params(
            key={"userId": user_id},
            fields=profile,
            allow_remove=True,
        )
        user = config.user_table.update_item(**update_params)["Attributes"]
        logger.info(f"Updated profile for user {user_id}")
        return user

    user = {
        "userId": user_id,
        "registrationDate": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        **{k: v for k, v in profile.items() if v is not None},
    }
    config.user_table.put_item(Item=user)
    logger.info(f"Registered new user {user_id}")
    return user
