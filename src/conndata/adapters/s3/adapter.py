from __future__ import annotations

import gzip
import json
import zlib
from contextlib import closing
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from conndata.common.cancellation import CancellationToken
from conndata.common.errors import BadRequestError, DecodeError, NotImplementedConnectionError
from conndata.common.logger import get_logger
from conndata.common.settings import settings
from conndata.connections.models import Connection
from conndata.jobs.registry import JobRunRegistry
from conndata.adapters.base import ConnectionAdapter
from conndata.adapters.coerce import encode_json_value
from conndata.adapters.models import AwsS3RunSelector, DatabaseColumn, Row, build_table
from .client import build_s3_client, translate_aws_error
from .runs import activities_prefix, find_latest_run_with_data

logger = get_logger(__name__)

DECOMPRESS_ERRORS = (gzip.BadGzipFile, zlib.error, EOFError)


def data_prefix(run_id: str, schema: str, table: str) -> str:
    """Key prefix of one table's gzip NDJSON objects for a run."""
    return f"{activities_prefix(run_id)}{build_table(schema, table)}/data"


def parse_table_prefix(run_id: str, prefix: str) -> Optional[Tuple[str, str]]:
    """``workflows/<run>/activities/<schema>.<table>/`` -> (schema, table), None if unparsable."""
    segment = prefix[len(activities_prefix(run_id)):].strip("/")
    schema, sep, table = segment.partition(".")
    if not sep or not schema or not table:
        return None
    return schema, table


class AwsS3Adapter(ConnectionAdapter):
    """
    Reads job run artifacts written to S3 as gzip-compressed JSON lines.

    There is no catalog: columns are inferred from the first record of a
    table's first data object, and constraint, DDL and row count operations
    are not supported.
    """

    kind = "aws_s3"
    has_catalog = False

    def __init__(
        self,
        connection: Connection,
        job_runs: Optional[JobRunRegistry] = None,
        s3_client: Any = None,
        client_factory: Callable[..., Any] = build_s3_client,
        page_size: Optional[int] = None,
    ):
        super().__init__(connection)
        self.job_runs = job_runs
        self._client = s3_client
        self._client_factory = client_factory
        self.page_size = page_size if page_size is not None else settings.s3_list_page_size

    @classmethod
    def from_connection(cls, connection: Connection, **options: Any) -> "AwsS3Adapter":
        return cls(connection, job_runs=options.get("job_runs"))

    @property
    def bucket(self) -> str:
        return self.connection.connection_config.bucket

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(self.connection.connection_config)
        return self._client

    def _details(self, operation: str, **extra: Any) -> Dict[str, Any]:
        return {"operation": operation, "connection_id": self.connection_id, "bucket": self.bucket, **extra}

    def _call(self, operation: str, method: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            return getattr(self.client, method)(Bucket=self.bucket, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 {method} failed during {operation} for {self}: {e}")
            raise translate_aws_error(e, f"S3 {method} failed", self._details(operation, **kwargs)) from e

    def _list_pages(
        self,
        operation: str,
        cancellation: Optional[CancellationToken] = None,
        **kwargs: Any,
    ) -> Iterator[Dict[str, Any]]:
        """Follows continuation tokens until the listing is no longer truncated."""
        params = dict(kwargs)
        if self.page_size:
            params.setdefault("MaxKeys", self.page_size)
        while True:
            if cancellation is not None:
                cancellation.raise_if_cancelled(operation)
            page = self._call(operation, "list_objects_v2", **params)
            yield page
            if not page.get("IsTruncated"):
                return
            params["ContinuationToken"] = page["NextContinuationToken"]

    # Runs

    def resolve_run(self, run_selector: Optional[AwsS3RunSelector]) -> str:
        if run_selector is None:
            raise BadRequestError(
                "aws_s3 connections require a job_id or job_run_id",
                details={"connection_id": self.connection_id},
            )
        if run_selector.job_run_id:
            return run_selector.job_run_id
        if self.job_runs is None:
            raise NotImplementedConnectionError(
                "Resolving runs by job_id requires a job run registry",
                details={"connection_id": self.connection_id, "job_id": run_selector.job_id},
            )
        return find_latest_run_with_data(self.job_runs, self.client, self.bucket, run_selector.job_id)

    def resolve_selector(self, run_selector: Optional[AwsS3RunSelector]) -> AwsS3RunSelector:
        """Resolves a job selector to its run once so later calls reuse the same run."""
        return AwsS3RunSelector(job_run_id=self.resolve_run(run_selector))

    # Introspection

    def list_tables(self, run_id: str) -> List[Tuple[str, str]]:
        tables = []
        for page in self._list_pages("list_tables", Prefix=activities_prefix(run_id), Delimiter="/"):
            for common_prefix in page.get("CommonPrefixes", []):
                parsed = parse_table_prefix(run_id, common_prefix["Prefix"])
                if parsed is None:
                    logger.warning(f"Skipping unparsable table prefix {common_prefix['Prefix']} for {self}")
                    continue
                tables.append(parsed)
        return tables

    def infer_schema(self, run_id: str, schema: str, table: str) -> List[DatabaseColumn]:
        """Columns from the keys of the first record of the table's first data object."""
        listing = self._call(
            "infer_schema", "list_objects_v2", Prefix=data_prefix(run_id, schema, table), MaxKeys=1
        )
        contents = listing.get("Contents", [])
        if not contents:
            return []

        with closing(self._iter_records(contents[0]["Key"], "infer_schema")) as records:
            first = next(records, None)
        if first is None:
            return []
        return [DatabaseColumn(schema=schema, table=table, column=name, data_type="") for name in first]

    def get_schema(self, run_selector: Optional[AwsS3RunSelector] = None) -> List[DatabaseColumn]:
        run_id = self.resolve_run(run_selector)
        columns: List[DatabaseColumn] = []
        for schema, table in self.list_tables(run_id):
            table_columns = self.infer_schema(run_id, schema, table)
            if not table_columns:
                logger.warning(f"No data found for {schema}.{table} in run {run_id} for {self}")
                continue
            columns.extend(table_columns)
        return columns

    def get_table_schema(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        return self.infer_schema(self.resolve_run(run_selector), schema, table)

    # Streaming

    def _decode_line(self, line: bytes, key: str, line_no: int) -> Dict[str, Any]:
        try:
            record = json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(
                f"Invalid JSON record in {key} at line {line_no}: {e}",
                details={"connection_id": self.connection_id, "key": key, "line": line_no},
            ) from e
        if not isinstance(record, dict):
            raise DecodeError(
                f"Record in {key} at line {line_no} is not a JSON object",
                details={"connection_id": self.connection_id, "key": key, "line": line_no},
            )
        return record

    def _iter_records(
        self,
        key: str,
        operation: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yields decoded records of one object. The body is closed on every exit path."""
        response = self._call(operation, "get_object", Key=key)
        with closing(response["Body"]) as body, gzip.GzipFile(fileobj=body, mode="rb") as stream:
            line_no = 0
            while True:
                try:
                    line = stream.readline()
                except DECOMPRESS_ERRORS as e:
                    raise DecodeError(
                        f"Unable to decompress {key}: {e}",
                        details={"connection_id": self.connection_id, "key": key, "line": line_no + 1},
                    ) from e
                if not line:
                    return
                line_no += 1
                if not line.strip():
                    continue
                if cancellation is not None:
                    cancellation.raise_if_cancelled(operation)
                yield self._decode_line(line, key, line_no)

    def stream_rows(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[Row]:
        run_id = self.resolve_run(run_selector)
        prefix = data_prefix(run_id, schema, table)
        objects = 0
        for page in self._list_pages("stream_rows", cancellation, Prefix=prefix):
            for item in page.get("Contents", []):
                objects += 1
                with closing(self._iter_records(item["Key"], "stream_rows", cancellation)) as records:
                    for record in records:
                        yield {name: encode_json_value(value) for name, value in record.items()}
        logger.debug(f"Streamed {objects} objects under {prefix} for {self}")
