from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from pydantic import SecretStr

from conndata.adapters.models import AwsS3RunSelector
from conndata.adapters.s3 import AwsS3Adapter, build_s3_client, data_prefix, parse_table_prefix
from conndata.common.cancellation import CancellationToken
from conndata.common.errors import (
    BadRequestError,
    CancelledError,
    ConnectionFailedError,
    DecodeError,
    NotImplementedConnectionError,
    QueryError,
)
from conndata.connections.models import AwsS3ConnectionConfig, AwsS3Credentials
from conndata.jobs import InMemoryJobRunRegistry, JobRun

RUN = AwsS3RunSelector(job_run_id="r1")
USERS = "workflows/r1/activities/public.users/data"


def client_error(code, operation="ListObjectsV2"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def test_table_prefix_helpers():
    assert data_prefix("r1", "public", "users") == USERS
    assert parse_table_prefix("r1", "workflows/r1/activities/public.users/") == ("public", "users")
    assert parse_table_prefix("r1", "workflows/r1/activities/manifest/") is None


def test_json_lines_become_rows(s3_connection, fake_s3, ndjson_gz):
    # Arrange
    client = fake_s3({f"{USERS}/part-0.json.gz": ndjson_gz({"a": "x", "b": 5, "c": None, "d": {"k": [1, True]}})})
    adapter = AwsS3Adapter(s3_connection, s3_client=client)

    # Act
    rows = list(adapter.stream_rows("public", "users", RUN))

    # Assert
    assert rows == [{"a": b"x", "b": b"5", "c": None, "d": b'{"k":[1,true]}'}]
    assert all(body.closed for body in client.opened)


def test_stream_follows_listing_pagination(s3_connection, fake_s3, ndjson_gz):
    # Validates continuation handling because large runs span several listing pages.
    # Arrange
    objects = {f"{USERS}/part-{i}.json.gz": ndjson_gz({"id": i}) for i in range(5)}
    client = fake_s3(objects, page_size=2)
    adapter = AwsS3Adapter(s3_connection, s3_client=client, page_size=2)

    # Act
    rows = list(adapter.stream_rows("public", "users", RUN))

    # Assert
    assert [r["id"] for r in rows] == [b"0", b"1", b"2", b"3", b"4"]
    assert [c["ContinuationToken"] for c in client.list_calls] == [None, "2", "4"]


def test_corrupt_object_stops_stream_and_closes_bodies(s3_connection, fake_s3, ndjson_gz):
    # Validates partial-stream failure because rows already sent stay sent and nothing later is read.
    # Arrange
    client = fake_s3({
        f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1}, {"id": 2}),
        f"{USERS}/part-2.json.gz": b"this is not gzip data",
        f"{USERS}/part-3.json.gz": ndjson_gz({"id": 3}),
    })
    adapter = AwsS3Adapter(s3_connection, s3_client=client)
    rows = []

    # Act
    with pytest.raises(DecodeError) as exc_info:
        for row in adapter.stream_rows("public", "users", RUN):
            rows.append(row)

    # Assert
    assert [r["id"] for r in rows] == [b"1", b"2"]
    assert exc_info.value.details["key"] == f"{USERS}/part-2.json.gz"
    assert [body.key for body in client.opened] == [f"{USERS}/part-1.json.gz", f"{USERS}/part-2.json.gz"]
    assert all(body.closed for body in client.opened)


def test_abandoned_stream_closes_open_body(s3_connection, fake_s3, ndjson_gz):
    # Arrange
    client = fake_s3({f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1}, {"id": 2})})
    adapter = AwsS3Adapter(s3_connection, s3_client=client)
    rows = adapter.stream_rows("public", "users", RUN)

    # Act
    next(rows)
    rows.close()

    # Assert
    assert client.opened[0].closed


def test_blank_lines_are_skipped(s3_connection, fake_s3, ndjson_gz):
    client = fake_s3({f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1}, "", "   ", {"id": 2})})
    adapter = AwsS3Adapter(s3_connection, s3_client=client)

    assert len(list(adapter.stream_rows("public", "users", RUN))) == 2


@pytest.mark.parametrize("line", ["[1, 2]", "{not json", '"text"'])
def test_non_object_lines_are_decode_errors(s3_connection, fake_s3, ndjson_gz, line):
    # Arrange
    client = fake_s3({f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1}, line)})
    adapter = AwsS3Adapter(s3_connection, s3_client=client)

    # Act / Assert
    with pytest.raises(DecodeError) as exc_info:
        list(adapter.stream_rows("public", "users", RUN))
    assert exc_info.value.details["line"] == 2


def test_cancellation_stops_between_records(s3_connection, fake_s3, ndjson_gz):
    # Arrange
    client = fake_s3({f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1}, {"id": 2})})
    adapter = AwsS3Adapter(s3_connection, s3_client=client)
    token = CancellationToken()
    rows = adapter.stream_rows("public", "users", RUN, token)

    # Act
    first = next(rows)
    token.cancel()

    # Assert
    assert first == {"id": b"1"}
    with pytest.raises(CancelledError):
        next(rows)
    assert client.opened[0].closed


def test_schema_is_inferred_from_first_record(s3_connection, fake_s3, ndjson_gz):
    # Validates column inference because object stores carry no catalog.
    # Arrange
    client = fake_s3({
        f"{USERS}/part-1.json.gz": ndjson_gz({"id": 1, "email": "a@b.c"}, {"id": 2, "extra": True}),
        "workflows/r1/activities/public.empty/manifest.json": b"{}",
        "workflows/r1/activities/logs/run.txt": b"log",
    })
    adapter = AwsS3Adapter(s3_connection, s3_client=client)

    # Act
    columns = adapter.get_schema(RUN)

    # Assert
    assert [(c.table_key, c.column, c.data_type) for c in columns] == [
        ("public.users", "id", ""),
        ("public.users", "email", ""),
    ]
    assert all(body.closed for body in client.opened)


def test_table_schema_for_missing_table_is_empty(s3_connection, fake_s3):
    adapter = AwsS3Adapter(s3_connection, s3_client=fake_s3({}))

    assert adapter.get_table_schema("public", "ghost", RUN) == []


def test_missing_selector_is_bad_request(s3_connection, fake_s3):
    adapter = AwsS3Adapter(s3_connection, s3_client=fake_s3({}))

    with pytest.raises(BadRequestError):
        adapter.get_table_schema("public", "users")


def test_job_selector_needs_run_registry(s3_connection, fake_s3):
    adapter = AwsS3Adapter(s3_connection, s3_client=fake_s3({}))

    with pytest.raises(NotImplementedConnectionError):
        adapter.resolve_selector(AwsS3RunSelector(job_id="job-1"))


def test_job_selector_is_pinned_to_a_run(s3_connection, fake_s3, ndjson_gz):
    # Arrange
    runs = InMemoryJobRunRegistry([
        JobRun(job_id="job-1", job_run_id="r1"),
        JobRun(job_id="job-1", job_run_id="r2"),
        JobRun(job_id="job-1", job_run_id="r3"),
    ])
    client = fake_s3({"workflows/r2/activities/public.users/data/part-1.json.gz": ndjson_gz({"id": 1})})
    adapter = AwsS3Adapter(s3_connection, job_runs=runs, s3_client=client)

    # Act
    selector = adapter.resolve_selector(AwsS3RunSelector(job_id="job-1"))

    # Assert
    assert selector == AwsS3RunSelector(job_run_id="r2")


def test_catalog_operations_are_not_implemented(s3_connection, fake_s3):
    adapter = AwsS3Adapter(s3_connection, s3_client=fake_s3({}))

    with pytest.raises(NotImplementedConnectionError):
        adapter.require_catalog("get_row_count")
    with pytest.raises(NotImplementedConnectionError):
        adapter.get_create_statement("public", "users")
    with pytest.raises(NotImplementedConnectionError):
        adapter.get_foreign_keys(["public"])


@pytest.mark.parametrize("error, expected", [
    (client_error("AccessDenied"), ConnectionFailedError),
    (client_error("NoSuchBucket"), ConnectionFailedError),
    (client_error("SlowDown"), QueryError),
    (EndpointConnectionError(endpoint_url="https://s3.example"), ConnectionFailedError),
])
def test_aws_errors_are_translated(s3_connection, error, expected):
    # Arrange
    client = MagicMock()
    client.list_objects_v2.side_effect = error
    adapter = AwsS3Adapter(s3_connection, s3_client=client)

    # Act / Assert
    with pytest.raises(expected) as exc_info:
        adapter.get_table_schema("public", "users", RUN)
    assert exc_info.value.details["bucket"] == "lake"
    assert exc_info.value.__cause__ is error


@patch("conndata.adapters.s3.client.boto3")
def test_client_prefers_static_keys(mock_boto3):
    # Arrange
    config = AwsS3ConnectionConfig(
        bucket="lake",
        region="eu-west-1",
        endpoint="http://localhost:9000",
        credentials=AwsS3Credentials(
            profile="ignored",
            access_key_id=SecretStr("AKIA"),
            secret_access_key=SecretStr("shh"),
        ),
    )

    # Act
    build_s3_client(config)

    # Assert
    mock_boto3.Session.assert_called_once_with(
        region_name="eu-west-1",
        aws_access_key_id="AKIA",
        aws_secret_access_key="shh",
        aws_session_token=None,
    )
    mock_boto3.Session.return_value.client.assert_called_once_with("s3", endpoint_url="http://localhost:9000")


@patch("conndata.adapters.s3.client.boto3")
def test_client_uses_profile_without_keys(mock_boto3):
    config = AwsS3ConnectionConfig(bucket="lake", credentials=AwsS3Credentials(profile="analytics"))

    build_s3_client(config)

    mock_boto3.Session.assert_called_once_with(region_name=None, profile_name="analytics")
