"""
Authentication utilities for Gallery API

Provides functions to extract and verify Auth0 bearer tokens and to resolve
the caller identity of an API Gateway event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    import config
except ImportError:
    # Local development
    import gallery_backend.config as config

from .errors import InternalError, Unauthorized

logger = logging.getLogger(__name__)

_jwks_client: jwt.PyJWKClient | None = None


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller, resolved before a handler runs."""

    user_id: str | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def get_jwks_client() -> jwt.PyJWKClient:
    """Return the JWKS client, created once per Lambda container."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = jwt.PyJWKClient(config.AUTH0_JWKS_URI)
    return _jwks_client


def get_auth_header(event: dict) -> str | None:
    """Read the Authorization header regardless of its casing."""
    headers = event.get("headers") or {}
    for name, value in headers.items():
        if name.lower() == "authorization":
            return value
    return None


def get_auth_token(auth_header: str | None) -> str:
    """
    Get the bearer token from an Authorization header.

    Args:
        auth_header: Header value in the form "Bearer <token>"

    Returns:
        str: The raw token

    Raises:
        Unauthorized: If the header is missing or malformed
    """
    if not auth_header:
        raise Unauthorized("No authentication header")

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise Unauthorized("Malformed token.")
    return parts[1]


def decode_token(token: str) -> tuple[dict, dict]:
    """
    Decode a JWT without verifying it.

    The token must carry the signing key id and the user id.

    Returns:
        tuple: (header, payload)
    """
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        raise Unauthorized("Malformed token.") from None

    if not header.get("kid") or not payload.get("sub"):
        raise Unauthorized("Malformed token.")
    return header, payload


def verify_token(token: str) -> dict:
    """
    Verify an Auth0 RS256 token and return its claims.

    Checks signature, audience, issuer and expiration.

    Raises:
        InternalError: If the signing key set cannot be fetched
        Unauthorized: If the token is invalid for any other reason
    """
    header, _ = decode_token(token)

    try:
        signing_key = get_jwks_client().get_signing_key(header["kid"])
    except jwt.PyJWKClientConnectionError as e:
        logger.error(f"Unable to fetch Auth0 signing keys: {str(e)}")
        raise InternalError("Not possible to retrieve the token signing key.") from None
    except jwt.PyJWKClientError as e:
        logger.warning(f"Unknown signing key {header['kid']}: {str(e)}")
        raise Unauthorized("Invalid token.") from None

    try:
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=config.AUTH0_AUDIENCE,
            issuer=config.AUTH0_ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Token verification failed: {str(e)}")
        raise Unauthorized("Invalid token.") from None


def get_user_id(event: dict) -> str | None:
    """
    Extract the user ID set by the API Gateway token authorizer.

    Args:
        event: API Gateway event

    Returns:
        str: The principalId (token subject), or None if no authorizer ran
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    return authorizer.get("principalId") or (authorizer.get("claims") or {}).get("sub")


def authenticate(event: dict, required: bool = True) -> RequestContext:
    """
    Resolve the caller of an API Gateway event.

    The authorizer's principalId is trusted when present; otherwise the bearer
    token is verified here. With required=False a request without an
    Authorization header yields an anonymous context, but a header that is
    present and invalid is still rejected.

    Raises:
        Unauthorized: If authentication is required and fails
    """
    auth_header = get_auth_header(event)
    token = get_auth_token(auth_header) if auth_header else None

    user_id = get_user_id(event)
    if user_id:
        return RequestContext(user_id=user_id, token=token)

    if token is None:
        if required:
            raise Unauthorized("No authentication header")
        return RequestContext()

    claims = verify_token(token)
    return RequestContext(user_id=claims["sub"], token=token)


def generate_policy(allow: bool, principal_id: str, resource: str) -> dict:
    """
    Build the IAM policy returned by the token authorizer.

    Args:
        allow: Whether to allow invoking the API
        principal_id: Token subject (or a placeholder when denied)
        resource: The methodArn being authorized
    """
    return {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": "Allow" if allow else "Deny",
                    "Resource": resource,
                }
            ],
        },
    }
