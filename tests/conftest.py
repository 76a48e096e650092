"""
Shared fixtures: in-memory stand-ins for the DynamoDB tables and the S3 client
"""

import copy
import re
from contextlib import contextmanager
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError

from gallery_backend import config


class FakeTable:
    """
    Minimal in-memory DynamoDB Table supporting the calls the API makes.

    key: (hash, range) names of the primary key
    indexes: index name -> (hash, range) names
    """

    def __init__(self, key, indexes=None):
        self.key = key
        self.indexes = indexes or {}
        self.items = {}
        self.batch_calls = 0

    def _pk(self, item):
        return tuple(item[name] for name in self.key if name)

    def put_item(self, Item, **kwargs):
        self.items[self._pk(Item)] = copy.deepcopy(Item)
        return {}

    def get_item(self, Key, **kwargs):
        item = self.items.get(self._pk(Key))
        return {"Item": copy.deepcopy(item)} if item else {}

    def delete_item(self, Key, ConditionExpression=None, **kwargs):
        if ConditionExpression and self._pk(Key) not in self.items:
            raise _conditional_failure("DeleteItem")
        self.items.pop(self._pk(Key), None)
        return {}

    def update_item(self, Key, UpdateExpression, ExpressionAttributeNames,
                    ExpressionAttributeValues=None, ConditionExpression=None,
                    ReturnValues="NONE"):
        pk = self._pk(Key)
        if ConditionExpression and pk not in self.items:
            raise _conditional_failure("UpdateItem")
        item = self.items.setdefault(pk, copy.deepcopy(Key))
        values = ExpressionAttributeValues or {}

        set_part = re.search(r"SET (.*?)(?: REMOVE|$)", UpdateExpression)
        if set_part:
            for assignment in set_part.group(1).split(", "):
                name, value = assignment.split(" = ")
                item[ExpressionAttributeNames[name]] = values[value]
        remove_part = re.search(r"REMOVE (.*)$", UpdateExpression)
        if remove_part:
            for name in remove_part.group(1).split(", "):
                item.pop(ExpressionAttributeNames[name], None)

        return {"Attributes": copy.deepcopy(item)} if ReturnValues == "ALL_NEW" else {}

    def query(self, KeyConditionExpression, ExpressionAttributeValues, IndexName=None,
              Limit=None, ExclusiveStartKey=None, ScanIndexForward=True, **kwargs):
        hash_name, placeholder = [part.strip() for part in KeyConditionExpression.split("=")]
        hash_value = ExpressionAttributeValues[placeholder]
        index_hash, index_range = self.indexes[IndexName] if IndexName else self.key
        key_names = {name for name in self.key + (index_hash, index_range) if name}

        if ExclusiveStartKey is not None and set(ExclusiveStartKey) != key_names:
            raise ClientError(
                {"Error": {"Code": "ValidationException", "Message": "The provided starting key is invalid"}},
                "Query",
            )

        def sort_key(item):
            return (item.get(index_range, ""),) + self._pk(item) if index_range else self._pk(item)

        matches = sorted(
            (item for item in self.items.values() if item.get(index_hash) == hash_value),
            key=sort_key,
            reverse=not ScanIndexForward,
        )

        if ExclusiveStartKey:
            start = sort_key(ExclusiveStartKey)
            if ScanIndexForward:
                matches = [item for item in matches if sort_key(item) > start]
            else:
                matches = [item for item in matches if sort_key(item) < start]

        page = matches[:Limit] if Limit else matches
        response = {"Items": copy.deepcopy(page), "Count": len(page)}
        if Limit and len(matches) > Limit:
            last = page[-1]
            response["LastEvaluatedKey"] = {name: last[name] for name in key_names}
        return response

    @contextmanager
    def batch_writer(self):
        self.batch_calls += 1
        writer = Mock()
        writer.put_item.side_effect = lambda Item: self.put_item(Item=Item)
        writer.delete_item.side_effect = lambda Key: self.delete_item(Key=Key)
        yield writer


def _conditional_failure(operation):
    return ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
        operation,
    )


def _presign(client_method, Params, ExpiresIn):
    operation = "GET" if client_method == "get_object" else "PUT"
    return f"https://test-bucket.s3.amazonaws.com/{Params['Key']}?method={operation}&X-Amz-Expires={ExpiresIn}"


@pytest.fixture
def album_table():
    return FakeTable(
        ("userId", "albumId"),
        {
            config.ALBUM_ID_INDEX: ("albumId", None),
            config.ALBUM_VISIBILITY_INDEX: ("visibility", "creationDate"),
            config.ALBUM_USER_INDEX: ("userId", "creationDate"),
        },
    )


@pytest.fixture
def art_table():
    return FakeTable(("albumId", "artId"), {config.ART_SEQUENCE_INDEX: ("albumId", "sequenceNum")})


@pytest.fixture
def user_table():
    return FakeTable(("userId", None))


@pytest.fixture
def s3_client():
    client = Mock()
    client.generate_presigned_url.side_effect = _presign
    client.delete_objects.return_value = {"Deleted": []}
    return client


@pytest.fixture
def aws(album_table, art_table, user_table, s3_client):
    """Patch every AWS resource in config with in-memory fakes."""
    with patch.object(config, "album_table", album_table), \
         patch.object(config, "art_table", art_table), \
         patch.object(config, "user_table", user_table), \
         patch.object(config, "s3_client", s3_client):
        yield Mock(album_table=album_table, art_table=art_table, user_table=user_table, s3_client=s3_client)


@pytest.fixture
def registered_users(user_table):
    for user_id, name in (("auth0|owner-1", "Owner One"), ("auth0|other-2", "Other Two")):
        user_table.put_item(Item={
            "userId": user_id,
            "registrationDate": "2024-01-01T00:00:00.000Z",
            "name": name,
            "email": f"{name.split()[0].lower()}@example.com",
        })
