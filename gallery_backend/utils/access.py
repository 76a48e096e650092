"""
Authorization rules for albums and their arts

Arts have no owner of their own: every check is made against the parent album.
"""

from __future__ import annotations

from .errors import Forbidden

PUBLIC = "public"
PRIVATE = "private"
VISIBILITIES = (PUBLIC, PRIVATE)


def authorize_album_read(user_id: str | None, album: dict) -> bool:
    """Public albums are readable by anyone, private ones only by their owner."""
    if album.get("visibility") == PUBLIC:
        return True
    return user_id is not None and user_id == album.get("userId")


def authorize_album_write(user_id: str | None, album: dict) -> bool:
    return user_id is not None and user_id == album.get("userId")


def require_album_read(user_id: str | None, album: dict) -> None:
    if not authorize_album_read(user_id, album):
        raise Forbidden("Unauthorized.")


def require_album_write(user_id: str | None, album: dict) -> None:
    if not authorize_album_write(user_id, album):
        raise Forbidden("Unauthorized.")
