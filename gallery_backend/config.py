"""
Configuration and AWS client initialization for Gallery API Lambda handlers

This module provides:
- AWS service clients (S3, DynamoDB) with a bounded retry policy
- Environment variable configuration (tables, indexes, bucket, Auth0)
- Constants used across handlers
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table
    from mypy_boto3_s3.client import S3Client

# Constants
UUID_LENGTH = 36  # Length of album and art identifiers (uuid4)
MAX_STRING_LENGTH = 2000  # Maximum length for title/description fields
MAX_BATCH_SIZE = 100  # Maximum number of arts in one put/delete request
USER_INFO_TIMEOUT_SECONDS = 5
MAX_RETRY_ATTEMPTS = 4

AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")

# Standard retry mode: jittered exponential backoff on throttling and transient errors
RETRY_CONFIG = Config(retries={"max_attempts": MAX_RETRY_ATTEMPTS, "mode": "standard"})

# Initialize AWS clients with type hints
s3_client: "S3Client" = boto3.client(
    "s3",
    region_name=AWS_REGION,
    config=RETRY_CONFIG.merge(Config(signature_version="s3v4")),
)
dynamodb: "DynamoDBServiceResource" = boto3.resource(
    "dynamodb", region_name=AWS_REGION, config=RETRY_CONFIG
)

# Environment configuration
IMAGES_S3_BUCKET = os.environ.get("IMAGES_S3_BUCKET", "YOUR_BUCKET")
S3_SIGNED_URL_EXP = int(os.environ.get("S3_SIGNED_URL_EXP", "300"))

ALBUM_TABLE_NAME = os.environ.get("ALBUM_TABLE")
ALBUM_ID_INDEX = os.environ.get("ALBUM_ID_INDEX", "AlbumIdIndex")
ALBUM_VISIBILITY_INDEX = os.environ.get("ALBUM_VISIBILITY_INDEX", "VisibilityIndex")
ALBUM_USER_INDEX = os.environ.get("ALBUM_USER_INDEX", "UserCreationDateIndex")
ART_TABLE_NAME = os.environ.get("ART_TABLE")
ART_SEQUENCE_INDEX = os.environ.get("ART_SEQUENCE_INDEX", "SequenceNumIndex")
USER_TABLE_NAME = os.environ.get("USER_TABLE")

AUTH0_JWKS_URI = os.environ.get("AUTH0_JWKS_URI", "")
AUTH0_AUDIENCE = os.environ.get("AUTH0_AUDIENCE", "")
AUTH0_ISSUER = os.environ.get("AUTH0_ISSUER", "")
AUTH0_USER_INFO_URI = os.environ.get("AUTH0_USER_INFO_URI", "")

# Initialize DynamoDB tables
# For type checking: treat as non-None (tests will mock these)
# For production: Lambda environment must have these env vars set
if ALBUM_TABLE_NAME:
    album_table: "Table" = dynamodb.Table(ALBUM_TABLE_NAME)
else:
    album_table = None  # type: ignore[assignment]

if ART_TABLE_NAME:
    art_table: "Table" = dynamodb.Table(ART_TABLE_NAME)
else:
    art_table = None  # type: ignore[assignment]

if USER_TABLE_NAME:
    user_table: "Table" = dynamodb.Table(USER_TABLE_NAME)
else:
    user_table = None  # type: ignore[assignment]
