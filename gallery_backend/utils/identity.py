"""
Identity provider utilities for Gallery API

Fetches the caller profile from the Auth0 userinfo endpoint and normalizes it
per upstream provider. Auth0 subjects look like "<provider>|<id>", e.g.
"auth0|5f1c..." or "google-oauth2|1093...".
"""

from __future__ import annotations

import logging
from typing import Callable

import requests

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
except ImportError:
    # Local development
    import gallery_backend.config as config

from .errors import InternalError, Unauthorized

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "nickname", "email", "picture")


def fetch_user_info(access_token: str) -> dict:
    """
    Get the caller profile from the identity provider.

    Args:
        access_token: The bearer token sent by the client

    Returns:
        dict: Raw userinfo claims

    Raises:
        Unauthorized: If the provider rejects the token
        InternalError: If the provider cannot be reached or answers with an error
    """
    try:
        response = requests.get(
            config.AUTH0_USER_INFO_URI,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=config.USER_INFO_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error(f"User info request failed: {str(e)}")
        raise InternalError("Not possible to retrieve the user profile.") from None

    if response.status_code in (401, 403):
        raise Unauthorized("Invalid token.")
    if not response.ok:
        logger.error(f"User info request returned {response.status_code}: {response.text}")
        raise InternalError("Not possible to retrieve the user profile.")

    try:
        user_info = response.json()
    except ValueError:
        raise InternalError("Invalid user profile returned by identity provider.") from None

    if not isinstance(user_info, dict) or not user_info.get("sub"):
        raise InternalError("Invalid user profile returned by identity provider.")
    return user_info


def provider_type(subject: str) -> str:
    """Return the provider part of an Auth0 subject ("auth0", "google-oauth2", ...)."""
    provider, sep, _ = subject.partition("|")
    return provider if sep else ""


def _identity_profile(user_info: dict) -> dict:
    return {field: user_info.get(field) for field in PROFILE_FIELDS}


def _auth0_profile(user_info: dict) -> dict:
    # Database connections put the e-mail in "name" and the chosen handle in "nickname"
    profile = _identity_profile(user_info)
    profile["name"], profile["nickname"] = user_info.get("nickname"), user_info.get("name")
    return profile


PROVIDER_ADAPTERS: dict[str, Callable[[dict], dict]] = {
    "auth0": _auth0_profile,
    "google-oauth2": _identity_profile,
    "facebook": _identity_profile,
}


def map_user_profile(user_info: dict) -> dict:
    """
    Normalize provider userinfo claims to the stored profile fields.

    Unknown providers use the claims as-is.
    """
    adapter = PROVIDER_ADAPTERS.get(provider_type(user_info["sub"]), _identity_profile)
    return adapter(user_info)
