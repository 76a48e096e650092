"""
Unit tests for utility modules
"""

import logging
import time
from decimal import Decimal
from unittest.mock import Mock, patch

import jwt
import pytest
from botocore.exceptions import ClientError
from cryptography.hazmat.primitives.asymmetric import rsa

from gallery_backend import config
from gallery_backend.utils import auth
from gallery_backend.utils.access import authorize_album_read, authorize_album_write
from gallery_backend.utils.dynamodb import build_update_expression, build_update_params, strip_user_ids
from gallery_backend.utils.errors import (
    BadRequest,
    Forbidden,
    InternalError,
    MalformedCursor,
    Unauthorized,
    ValidationError,
)
from gallery_backend.utils.file_store import album_cover_key, album_prefix, art_image_key
from gallery_backend.utils.identity import map_user_profile, provider_type
from gallery_backend.utils.pagination import decode_next_key, encode_next_key, query_page, validate_limit_param
from gallery_backend.utils.response import api_error_response, http_log_level
from gallery_backend.utils.validation import (
    validate_add_album,
    validate_delete_arts,
    validate_edit_album,
    validate_put_arts,
)

ALBUM_ID = "11111111-1111-4111-8111-111111111111"
ART_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"


# ============================================================================
# Pagination Utility Tests
# ============================================================================


@pytest.mark.parametrize("key", [
    {"albumId": ALBUM_ID},
    {"userId": "auth0|1", "albumId": ALBUM_ID, "visibility": "public", "creationDate": "2024-01-01T00:00:00.000Z"},
    {"albumId": ALBUM_ID, "artId": ART_ID, "sequenceNum": 7},
    {"title": "100% & more / ?=#"},
])
def test_next_key_round_trip(key):
    assert decode_next_key(encode_next_key(key)) == key


def test_next_key_round_trip_decimal():
    """Test that DynamoDB Decimal numbers survive the cursor"""
    key = {"albumId": ALBUM_ID, "sequenceNum": Decimal("12")}

    decoded = decode_next_key(encode_next_key(key))

    assert decoded == key
    assert not isinstance(decoded["sequenceNum"], float)


def test_next_key_absent():
    assert encode_next_key(None) is None
    assert decode_next_key(None) is None
    assert decode_next_key("") is None


def test_next_key_is_url_safe():
    encoded = encode_next_key({"albumId": ALBUM_ID, "creationDate": "2024-01-01T00:00:00.000Z"})

    assert all(ch not in encoded for ch in ' {}":,')


@pytest.mark.parametrize("token", ["not-json", "%5B1%2C2%5D", "%7B%7D", "%22text%22"])
def test_decode_next_key_malformed(token):
    with pytest.raises(MalformedCursor):
        decode_next_key(token)


def test_malformed_cursor_is_client_error():
    assert issubclass(MalformedCursor, BadRequest)
    assert MalformedCursor.status_code == 400


@pytest.mark.parametrize("limit, expected", [(None, None), ("", None), ("5", 5), (3, 3)])
def test_validate_limit_param(limit, expected):
    assert validate_limit_param(limit) == expected


@pytest.mark.parametrize("limit", ["0", "-2", "abc", "1.5"])
def test_validate_limit_param_rejects(limit):
    with pytest.raises(ValidationError) as exc_info:
        validate_limit_param(limit)
    assert exc_info.value.field == "limit"


def test_query_page_rejected_start_key_is_malformed_cursor():
    """Test that a start key refused by DynamoDB surfaces as a bad cursor"""
    table = Mock()
    table.query.side_effect = ClientError(
        {"Error": {"Code": "ValidationException", "Message": "The provided starting key is invalid"}}, "Query"
    )

    with pytest.raises(MalformedCursor):
        query_page(table, limit=1, start_key={"foo": "bar"}, KeyConditionExpression="albumId = :albumId")


def test_query_page_validation_error_without_cursor_propagates():
    table = Mock()
    table.query.side_effect = ClientError({"Error": {"Code": "ValidationException", "Message": "bad"}}, "Query")

    with pytest.raises(ClientError):
        query_page(table, KeyConditionExpression="albumId = :albumId")


# ============================================================================
# Validation Utility Tests
# ============================================================================


def test_validate_add_album():
    params = validate_add_album({"visibility": "private", "title": "T", "description": "D"})

    assert params == {"visibility": "private", "title": "T", "description": "D"}


@pytest.mark.parametrize("body, field", [
    ({"title": "T", "description": "D"}, "visibility"),
    ({"visibility": "public", "title": "", "description": "D"}, "title"),
    ({"visibility": "public", "title": "T", "description": 5}, "description"),
    ({"visibility": "public", "title": "T", "description": "D", "extra": 1}, "extra"),
])
def test_validate_add_album_names_offending_field(body, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_add_album(body)
    assert exc_info.value.field == field


def test_validate_add_album_requires_object():
    with pytest.raises(ValidationError):
        validate_add_album(["not", "an", "object"])


def test_validate_edit_album_partial():
    params = validate_edit_album({"title": "New"}, path_album_id=ALBUM_ID)

    assert params == {"albumId": ALBUM_ID, "title": "New", "genUploadUrl": False}


def test_validate_edit_album_gen_upload_url_must_be_bool():
    with pytest.raises(ValidationError) as exc_info:
        validate_edit_album({"albumId": ALBUM_ID, "genUploadUrl": "yes"})
    assert exc_info.value.field == "genUploadUrl"


def test_validate_put_arts_rejects_duplicates():
    item = {"albumId": ALBUM_ID, "artId": ART_ID}

    with pytest.raises(ValidationError):
        validate_put_arts([item, dict(item)])


def test_validate_put_arts_rejects_repeated_art_id():
    items = [
        {"albumId": ALBUM_ID, "artId": ART_ID, "title": "one"},
        {"albumId": ALBUM_ID, "artId": ART_ID, "title": "two"},
    ]

    with pytest.raises(ValidationError) as exc_info:
        validate_put_arts(items)
    assert exc_info.value.field == "arts"


def test_validate_put_arts_allows_several_new_items():
    items = [
        {"albumId": ALBUM_ID, "title": "T", "description": "D"},
        {"albumId": ALBUM_ID, "title": "U", "description": "D"},
        {"albumId": ALBUM_ID, "artId": ART_ID, "title": "V"},
    ]

    assert len(validate_put_arts(items)) == 3


def test_validate_put_arts_rejects_oversized_batch():
    items = [{"albumId": ALBUM_ID, "title": f"T{i}", "description": "D"} for i in range(config.MAX_BATCH_SIZE + 1)]

    with pytest.raises(ValidationError):
        validate_put_arts(items)


def test_validate_delete_arts_requires_art_id():
    with pytest.raises(ValidationError) as exc_info:
        validate_delete_arts([{"albumId": ALBUM_ID}])
    assert exc_info.value.field == "artId"


# ============================================================================
# Access Control Tests
# ============================================================================


def test_authorize_album_read():
    public = {"userId": "u1", "visibility": "public"}
    private = {"userId": "u1", "visibility": "private"}

    assert authorize_album_read(None, public)
    assert authorize_album_read("u2", public)
    assert not authorize_album_read(None, private)
    assert not authorize_album_read("u2", private)
    assert authorize_album_read("u1", private)


def test_authorize_album_write():
    album = {"userId": "u1", "visibility": "public"}

    assert authorize_album_write("u1", album)
    assert not authorize_album_write("u2", album)
    assert not authorize_album_write(None, album)


# ============================================================================
# Authentication Tests
# ============================================================================


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_token(private_key, kid="key-1", **claims):
    payload = {
        "sub": "auth0|owner-1",
        "aud": "https://gallery-api",
        "iss": "https://tenant.auth0.com/",
        "exp": int(time.time()) + 300,
    }
    payload.update(claims)
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


@pytest.fixture
def auth0_config(rsa_key):
    jwks_client = Mock()
    jwks_client.get_signing_key.return_value = Mock(key=rsa_key.public_key())
    with patch.object(config, "AUTH0_AUDIENCE", "https://gallery-api"), \
         patch.object(config, "AUTH0_ISSUER", "https://tenant.auth0.com/"), \
         patch.object(auth, "get_jwks_client", return_value=jwks_client):
        yield jwks_client


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer ", "Bearer a b"])
def test_get_auth_token_rejects(header):
    with pytest.raises(Unauthorized):
        auth.get_auth_token(header)


def test_get_auth_token_case_insensitive_scheme():
    assert auth.get_auth_token("bearer abc.def.ghi") == "abc.def.ghi"


def test_verify_token_valid(rsa_key, auth0_config):
    claims = auth.verify_token(make_token(rsa_key))

    assert claims["sub"] == "auth0|owner-1"
    auth0_config.get_signing_key.assert_called_once_with("key-1")


@pytest.mark.parametrize("claims", [
    {"exp": int(time.time()) - 10},
    {"aud": "https://someone-else"},
    {"iss": "https://evil.example.com/"},
])
def test_verify_token_rejects_bad_claims(rsa_key, auth0_config, claims):
    with pytest.raises(Unauthorized) as exc_info:
        auth.verify_token(make_token(rsa_key, **claims))
    assert exc_info.value.message == "Invalid token."


def test_verify_token_rejects_foreign_signature(auth0_config):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    with pytest.raises(Unauthorized):
        auth.verify_token(make_token(other_key))


def test_verify_token_requires_kid(rsa_key, auth0_config):
    token = jwt.encode({"sub": "auth0|1"}, rsa_key, algorithm="RS256")

    with pytest.raises(Unauthorized):
        auth.verify_token(token)


def test_verify_token_jwks_unreachable(rsa_key, auth0_config):
    auth0_config.get_signing_key.side_effect = jwt.PyJWKClientConnectionError("timeout")

    with pytest.raises(InternalError):
        auth.verify_token(make_token(rsa_key))


def test_authenticate_verifies_header_without_authorizer(rsa_key, auth0_config):
    event = {"headers": {"authorization": f"Bearer {make_token(rsa_key)}"}}

    ctx = auth.authenticate(event)

    assert ctx.user_id == "auth0|owner-1"
    assert ctx.is_authenticated


def test_authenticate_optional_anonymous():
    ctx = auth.authenticate({"headers": {}}, required=False)

    assert ctx.user_id is None
    assert not ctx.is_authenticated


def test_authenticate_optional_rejects_bad_header(auth0_config):
    with pytest.raises(Unauthorized):
        auth.authenticate({"headers": {"Authorization": "Bearer not-a-jwt"}}, required=False)


def test_generate_policy():
    policy = auth.generate_policy(False, "unauthorized user", "arn:method")

    statement = policy["policyDocument"]["Statement"][0]
    assert statement == {"Action": "execute-api:Invoke", "Effect": "Deny", "Resource": "arn:method"}


# ============================================================================
# Identity Provider Tests
# ============================================================================


def test_provider_type():
    assert provider_type("auth0|abc") == "auth0"
    assert provider_type("google-oauth2|123") == "google-oauth2"
    assert provider_type("plain") == ""


def test_map_user_profile_google_unchanged():
    info = {"sub": "google-oauth2|1", "name": "Jane Doe", "nickname": "jane", "email": "j@x.com", "picture": "p"}

    assert map_user_profile(info) == {"name": "Jane Doe", "nickname": "jane", "email": "j@x.com", "picture": "p"}


def test_map_user_profile_auth0_swapped():
    info = {"sub": "auth0|1", "name": "j@x.com", "nickname": "jane", "email": "j@x.com"}

    profile = map_user_profile(info)

    assert profile["name"] == "jane"
    assert profile["nickname"] == "j@x.com"
    assert profile["picture"] is None


# ============================================================================
# File Store Key Tests
# ============================================================================


def test_object_keys():
    assert album_cover_key(ALBUM_ID) == f"{ALBUM_ID}/{ALBUM_ID}"
    assert art_image_key(ALBUM_ID, ART_ID) == f"{ALBUM_ID}/arts/{ART_ID}"
    assert album_cover_key(ALBUM_ID).startswith(album_prefix(ALBUM_ID))
    assert art_image_key(ALBUM_ID, ART_ID).startswith(album_prefix(ALBUM_ID))


# ============================================================================
# Response Utility Tests
# ============================================================================


@pytest.mark.parametrize("status, level", [
    (200, logging.INFO),
    (400, logging.WARNING),
    (401, logging.CRITICAL),
    (403, logging.CRITICAL),
    (404, logging.WARNING),
    (500, logging.ERROR),
])
def test_http_log_level(status, level):
    assert http_log_level(status) == level


def test_api_error_response():
    resp = api_error_response(Forbidden("Unauthorized."))

    assert resp["statusCode"] == 403
    assert resp["body"] == '{"error": "Forbidden", "message": "Unauthorized."}'
    assert resp["headers"]["Access-Control-Allow-Origin"] == "*"


def test_strip_user_ids():
    assert strip_user_ids([{"userId": "u", "albumId": "a"}]) == [{"albumId": "a"}]


# ============================================================================
# DynamoDB Utility Tests
# ============================================================================


def test_build_update_expression_set_only():
    """Test building update expression with only SET operations"""

    fields = {"title": "Summer", "visibility": "public"}
    expr, values, names = build_update_expression(fields)

    assert expr == "SET #title = :title, #visibility = :visibility"
    assert values == {":title": "Summer", ":visibility": "public"}
    assert names == {"#title": "title", "#visibility": "visibility"}


def test_build_update_expression_with_remove():
    """Test building update expression with REMOVE operations"""

    fields = {"name": "Jane", "picture": None}
    expr, values, names = build_update_expression(fields, allow_remove=True)

    assert expr == "SET #name = :name REMOVE #picture"
    assert values == {":name": "Jane"}
    assert names == {"#name": "name", "#picture": "picture"}


def test_build_update_params_with_condition():
    params = build_update_params(
        key={"userId": "u1", "albumId": ALBUM_ID},
        fields={"title": "Summer"},
        condition_expression="attribute_exists(albumId)",
    )

    assert params == {
        "Key": {"userId": "u1", "albumId": ALBUM_ID},
        "UpdateExpression": "SET #title = :title",
        "ExpressionAttributeNames": {"#title": "title"},
        "ExpressionAttributeValues": {":title": "Summer"},
        "ReturnValues": "ALL_NEW",
        "ConditionExpression": "attribute_exists(albumId)",
    }


def test_build_update_params_remove_only():
    params = build_update_params(key={"userId": "u1"}, fields={"picture": None}, allow_remove=True)

    assert params["UpdateExpression"] == "REMOVE #picture"
    assert "ExpressionAttributeValues" not in params
