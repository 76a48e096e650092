"""
Lambda handlers for identity (token authorizer, user profile)
"""

from __future__ import annotations

import logging

# Support both Lambda deployment and local development
try:
    # Lambda deployment
    from services import user_service
    from utils.auth import authenticate, generate_policy, get_auth_token, verify_token
    from utils.errors import ApiError
    from utils.response import api_error_response, api_response, error_response
except ImportError:
    # Local development
    from gallery_backend.services import user_service
    from gallery_backend.utils.auth import authenticate, generate_policy, get_auth_token, verify_token
    from gallery_backend.utils.errors import ApiError
    from gallery_backend.utils.response import api_error_response, api_response, error_response

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def authorizer_handler(event, context):
    """
    API Gateway TOKEN authorizer.
    Verifies the Auth0 bearer token and allows the call with the token subject
    as principalId. Any failure yields a Deny policy.
    """
    logger.info("authorizer_handler invoked")
    method_arn = event.get("methodArn", "*")

    try:
        token = get_auth_token(event.get("authorizationToken"))
        claims = verify_token(token)
        logger.info(f"User authorized: {claims['sub']}")
        return generate_policy(True, claims["sub"], method_arn)

    except ApiError as e:
        logger.critical(f"User not authorized: {e.message}")
    except Exception as e:
        logger.error(f"Error authorizing user: {str(e)}", exc_info=True)

    return generate_policy(False, "unauthorized user", method_arn)


def put_user_handler(event, context):
    """
    Lambda handler for PUT /user.
    Creates or refreshes the caller's profile from the identity provider.
    """
    logger.info("put_user_handler invoked")

    try:
        ctx = authenticate(event)
        if not ctx.token:
            return error_response(401, "Unauthorized", "No authentication header")

        user = user_service.put_user_info(ctx.user_id, ctx.token)
        logger.info(f"Profile stored for user {user['userId']}")
        return api_response(201, {"message": "User profile information added or edited in database."})

    except ApiError as e:
        return api_error_response(e)
    except Exception as e:
        logger.error(f"Error storing user profile: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", "Failed to store user profile")
