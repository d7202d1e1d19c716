import gzip
import io
import json

import pytest
from pydantic import SecretStr

from conndata.auth.models import UserContext
from conndata.common.context import RequestContext
from conndata.connections.models import (
    AwsS3ConnectionConfig,
    Connection,
    MysqlConnectionConfig,
    OpenAiConnectionConfig,
    PostgresConnectionConfig,
)

ACCOUNT_ID = "acct-1"


class TrackingBody(io.BytesIO):
    """Stands in for a botocore StreamingBody and records whether it was closed."""

    def __init__(self, data: bytes, key: str, opened: list):
        super().__init__(data)
        self.key = key
        opened.append(self)


class FakeS3Client:
    """In-memory subset of the S3 client API used by the object-store adapter.

    ``objects`` maps keys to raw (already gzip-compressed) bytes. Listings are
    served in key order, ``page_size`` keys at a time.
    """

    def __init__(self, objects=None, page_size=1000):
        self.objects = dict(objects or {})
        self.page_size = page_size
        self.opened = []
        self.list_calls = []

    def list_objects_v2(self, Bucket, Prefix="", Delimiter=None, MaxKeys=None, ContinuationToken=None):
        self.list_calls.append({"Prefix": Prefix, "Delimiter": Delimiter, "ContinuationToken": ContinuationToken})
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        if Delimiter:
            prefixes = []
            for key in keys:
                rest = key[len(Prefix):]
                if Delimiter in rest:
                    common = Prefix + rest.split(Delimiter, 1)[0] + Delimiter
                    if common not in prefixes:
                        prefixes.append(common)
            return {
                "KeyCount": len(prefixes),
                "CommonPrefixes": [{"Prefix": p} for p in prefixes],
                "IsTruncated": False,
            }

        limit = min(MaxKeys or self.page_size, self.page_size)
        start = int(ContinuationToken or 0)
        page = keys[start:start + limit]
        truncated = start + limit < len(keys)
        response = {
            "KeyCount": len(page),
            "Contents": [{"Key": k} for k in page],
            "IsTruncated": truncated,
        }
        if truncated:
            response["NextContinuationToken"] = str(start + limit)
        return response

    def get_object(self, Bucket, Key):
        return {"Body": TrackingBody(self.objects[Key], Key, self.opened)}


def gzip_lines(*records) -> bytes:
    """Gzip-compressed NDJSON. Strings are written verbatim, anything else JSON-encoded."""
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    return gzip.compress(("\n".join(lines) + "\n").encode("utf-8"))


@pytest.fixture
def fake_s3():
    return FakeS3Client


@pytest.fixture
def ndjson_gz():
    return gzip_lines


@pytest.fixture
def user():
    return UserContext(user_id="user-1", account_ids=[ACCOUNT_ID])


@pytest.fixture
def ctx(user):
    return RequestContext(user=user, trace_id="trace-test")


@pytest.fixture
def pg_connection():
    return Connection(
        id="pg-1",
        account_id=ACCOUNT_ID,
        connection_config=PostgresConnectionConfig(
            host="localhost", port=5432, name="app", user="app", password=SecretStr("secret")
        ),
    )


@pytest.fixture
def mysql_connection():
    return Connection(
        id="mysql-1",
        account_id=ACCOUNT_ID,
        connection_config=MysqlConnectionConfig(
            host="localhost", port=3306, name="app", user="app", password=SecretStr("secret")
        ),
    )


@pytest.fixture
def s3_connection():
    return Connection(
        id="s3-1",
        account_id=ACCOUNT_ID,
        connection_config=AwsS3ConnectionConfig(bucket="lake", region="us-east-1"),
    )


@pytest.fixture
def openai_connection():
    return Connection(
        id="ai-1",
        account_id=ACCOUNT_ID,
        connection_config=OpenAiConnectionConfig(api_url="https://llm.example/v1", api_key=SecretStr("sk-test")),
    )
