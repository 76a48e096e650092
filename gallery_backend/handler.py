"""
Lambda handlers for Gallery API

This module serves as the entry point for all Lambda functions.
It re-exports handlers from their respective modules for Lambda function configuration.

Architecture:
- API Gateway -> authorizer_handler (Auth0 RS256 token verification)
- API Gateway -> Lambda -> DynamoDB (album, art and user records)
- API Gateway -> Lambda -> S3 (presigned image download/upload URLs)
- Album/Art DynamoDB streams -> Lambda -> DynamoDB + S3 (cascade delete)

Handlers:
1. get_public_albums_handler: GET /album/public
2. get_user_albums_handler: GET /album/my
3. get_album_handler: GET /album/{albumId}
4. add_album_handler: PUT|POST /album/my
5. edit_album_handler: PATCH /album/my/{albumId}
6. delete_album_handler: DELETE /album/my
7. get_public_album_arts_handler: GET /album/public/{albumId}
8. get_user_album_arts_handler: GET /album/my/{albumId}
9. put_arts_handler: PUT /art/my
10. delete_arts_handler: DELETE /art/my
11. put_user_handler: PUT /user
12. authorizer_handler: API Gateway TOKEN authorizer
13. delete_album_arts_handler: Album table stream, removes arts of deleted albums
14. delete_s3_objects_handler: Album/Art table streams, removes images of deleted records
"""

# Re-export handlers for Lambda function configuration
# Support both local development (gallery_backend.X) and Lambda deployment (X)
try:
    # Lambda deployment (files are in root, not in gallery_backend/)
    from handlers.album_handlers import (
        add_album_handler,
        delete_album_handler,
        edit_album_handler,
        get_album_handler,
        get_public_albums_handler,
        get_user_albums_handler,
    )
    from handlers.art_handlers import (
        delete_arts_handler,
        get_public_album_arts_handler,
        get_user_album_arts_handler,
        put_arts_handler,
    )
    from handlers.stream_handlers import delete_album_arts_handler, delete_s3_objects_handler
    from handlers.user_handlers import authorizer_handler, put_user_handler
    from config import album_table, art_table, s3_client, user_table
except ImportError:
    # Local development / testing (with gallery_backend package structure)
    from gallery_backend.handlers.album_handlers import (
        add_album_handler,
        delete_album_handler,
        edit_album_handler,
        get_album_handler,
        get_public_albums_handler,
        get_user_albums_handler,
    )
    from gallery_backend.handlers.art_handlers import (
        delete_arts_handler,
        get_public_album_arts_handler,
        get_user_album_arts_handler,
        put_arts_handler,
    )
    from gallery_backend.handlers.stream_handlers import delete_album_arts_handler, delete_s3_objects_handler
    from gallery_backend.handlers.user_handlers import authorizer_handler, put_user_handler
    from gallery_backend.config import album_table, art_table, s3_client, user_table

# Make handlers available at module level for Lambda
__all__ = [
    "get_public_albums_handler",
    "get_user_albums_handler",
    "get_album_handler",
    "add_album_handler",
    "edit_album_handler",
    "delete_album_handler",
    "get_public_album_arts_handler",
    "get_user_album_arts_handler",
    "put_arts_handler",
    "delete_arts_handler",
    "put_user_handler",
    "authorizer_handler",
    "delete_album_arts_handler",
    "delete_s3_objects_handler",
    # Also export config for tests
    "album_table",
    "art_table",
    "user_table",
    "s3_client",
]
