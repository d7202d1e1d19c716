from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from conndata.adapters.base import ConnectionAdapter
from conndata.adapters.models import (
    AwsS3RunSelector,
    DatabaseColumn,
    ForeignKeyConstraint,
    InitStatementOptions,
    InitStatements,
    PrimaryKeyConstraint,
    Row,
    RowSink,
    TableConstraints,
    UniqueConstraint,
)
from conndata.adapters.registry import AdapterRegistry
from conndata.ai.generator import RowGenerator
from conndata.ai.models import Record
from conndata.auth.authorizer import Authorizer
from conndata.common.context import RequestContext
from conndata.common.errors import BadRequestError
from conndata.common.logger import get_logger, trace_context
from conndata.connections.models import Connection, OpenAiConnectionConfig
from conndata.connections.registry import ConnectionRegistry

logger = get_logger(__name__)


def schemas_of(columns: List[DatabaseColumn]) -> List[str]:
    """Distinct schema names in first-seen order."""
    return list(dict.fromkeys(col.schema_name for col in columns))


def tables_of(columns: List[DatabaseColumn]) -> Dict[str, DatabaseColumn]:
    """One representative column per "schema.table" key."""
    tables: Dict[str, DatabaseColumn] = {}
    for col in columns:
        tables.setdefault(col.table_key, col)
    return tables


def log_fields(operation: str, connection_id: str, **fields: Any) -> Dict[str, Any]:
    """Structured context for ``extra=``; the JSON formatter emits these as top-level keys."""
    return {"operation": operation, "connection_id": connection_id, **fields}


class RowStream:
    """
    Forward-only rows of one table. Owns the adapter that produces them and
    releases it on exhaustion, on error and on ``close()``, whether or not a
    row was ever pulled.
    """

    def __init__(self, adapter: ConnectionAdapter, rows: Iterator[Row]):
        self._adapter = adapter
        self._rows = rows
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "RowStream":
        return self

    def __next__(self) -> Row:
        try:
            return next(self._rows)
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            close_rows = getattr(self._rows, "close", None)
            if close_rows is not None:
                close_rows()
        finally:
            self._adapter.close()

    def __enter__(self) -> "RowStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        if not getattr(self, "_closed", True):
            self.close()


class ConnectionDataService:
    """
    Per-request entry points for connection introspection and row streaming.

    Every operation loads the connection, verifies the caller belongs to its
    account, picks the adapter for the connection's backend kind and
    delegates. Nothing is cached between calls.
    """

    def __init__(
        self,
        connections: ConnectionRegistry,
        authorizer: Authorizer,
        adapters: Optional[AdapterRegistry] = None,
        row_generator: Optional[RowGenerator] = None,
    ):
        self._connections = connections
        self._authorizer = authorizer
        self._adapters = adapters or AdapterRegistry()
        self._row_generator = row_generator or RowGenerator()

    def _get_connection(self, ctx: RequestContext, connection_id: str) -> Connection:
        connection = self._connections.get_connection(connection_id)
        self._authorizer.verify_user_in_account(ctx.user, connection.account_id)
        return connection

    def _validate_table(
        self,
        adapter: ConnectionAdapter,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        """Introspects the table; it must exist and have at least one column."""
        columns = adapter.get_table_schema(schema, table, run_selector)
        if not columns:
            raise BadRequestError(
                "must provide valid schema and table",
                details={"connection_id": adapter.connection_id, "schema": schema, "table": table},
            )
        return columns

    # Introspection

    def get_connection_schema(
        self,
        ctx: RequestContext,
        connection_id: str,
        schema_config: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                columns = adapter.get_schema(schema_config)
            logger.info(
                f"Fetched {len(columns)} columns for connection {connection_id}",
                extra=log_fields("get_connection_schema", connection_id, columns=len(columns)),
            )
            return columns

    def get_connection_table_constraints(self, ctx: RequestContext, connection_id: str) -> TableConstraints:
        """Foreign, primary and grouped unique constraints for every schema of the connection."""
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_connection_table_constraints")
                schemas = schemas_of(adapter.get_schema())
                return adapter.get_table_constraints(schemas)

    def get_connection_foreign_constraints(
        self, ctx: RequestContext, connection_id: str
    ) -> Dict[str, List[ForeignKeyConstraint]]:
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_connection_foreign_constraints")
                return adapter.get_foreign_keys(schemas_of(adapter.get_schema()))

    def get_connection_primary_constraints(
        self, ctx: RequestContext, connection_id: str
    ) -> Dict[str, PrimaryKeyConstraint]:
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_connection_primary_constraints")
                return adapter.get_primary_keys(schemas_of(adapter.get_schema()))

    def get_connection_unique_constraints(
        self, ctx: RequestContext, connection_id: str
    ) -> Dict[str, UniqueConstraint]:
        """
        Compatibility form: all unique constraints of a table merged into one
        column list. Which columns belong to which constraint is lost; use
        ``get_connection_table_constraints`` for the grouped form.
        """
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_connection_unique_constraints")
                grouped = adapter.get_unique_constraints(schemas_of(adapter.get_schema()))
            return {
                table: UniqueConstraint(columns=[col for uc in constraints for col in uc.columns])
                for table, constraints in grouped.items()
            }

    def get_connection_init_statements(
        self,
        ctx: RequestContext,
        connection_id: str,
        options: Optional[InitStatementOptions] = None,
    ) -> InitStatements:
        """
        CREATE statements (``init_schema``) and TRUNCATE statements for every
        table of the connection. Which truncate flags produce statements is
        decided by the adapter (``truncates_for``).
        """
        options = options or InitStatementOptions()
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_connection_init_statements")
                tables = tables_of(adapter.get_schema())
                statements = InitStatements()

                # Truncates first so unsupported modes fail before any DDL is read.
                cascade = adapter.truncates_for(options)
                if cascade is not None:
                    for key, col in tables.items():
                        statements.table_truncate_statements[key] = adapter.get_truncate_statement(
                            col.schema_name, col.table, cascade=cascade
                        )

                if options.init_schema:
                    for key, col in tables.items():
                        ctx.check_cancelled("get_connection_init_statements")
                        statements.table_init_statements[key] = adapter.get_create_statement(
                            col.schema_name, col.table
                        )

            logger.info(
                f"Built {len(statements.table_init_statements)} create and "
                f"{len(statements.table_truncate_statements)} truncate statements for connection {connection_id}",
                extra=log_fields("get_connection_init_statements", connection_id),
            )
            return statements

    def get_table_row_count(
        self,
        ctx: RequestContext,
        connection_id: str,
        schema: str,
        table: str,
        where_clause: Optional[str] = None,
    ) -> int:
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            with self._adapters.create(connection) as adapter:
                adapter.require_catalog("get_table_row_count")
                self._validate_table(adapter, schema, table)
                return adapter.get_row_count(schema, table, where_clause)

    # Streaming

    def iter_connection_data(
        self,
        ctx: RequestContext,
        connection_id: str,
        schema: str,
        table: str,
        stream_config: Optional[AwsS3RunSelector] = None,
    ) -> "RowStream":
        """
        Authorizes and validates eagerly, then returns a lazy, forward-only
        iterator of rows. The adapter is released when the iterator is
        exhausted, fails, or is closed, including before the first row.
        """
        with trace_context(ctx.trace_id):
            connection = self._get_connection(ctx, connection_id)
            adapter = self._adapters.create(connection)
            try:
                run_selector = adapter.resolve_selector(stream_config)
                self._validate_table(adapter, schema, table, run_selector)
            except BaseException:
                adapter.close()
                raise
        return RowStream(adapter, adapter.stream_rows(schema, table, run_selector, ctx.cancellation))

    def get_connection_data_stream(
        self,
        ctx: RequestContext,
        connection_id: str,
        schema: str,
        table: str,
        sink: RowSink,
        stream_config: Optional[AwsS3RunSelector] = None,
    ) -> int:
        """Pushes every row of the table to ``sink``. Returns the number of rows sent.

        A failing ``sink.send`` aborts the stream; rows already sent are not
        retracted and the call fails rather than reporting partial success.
        """
        with trace_context(ctx.trace_id):
            rows = self.iter_connection_data(ctx, connection_id, schema, table, stream_config)
            sent = 0
            try:
                for row in rows:
                    sink.send(row)
                    sent += 1
            except Exception:
                logger.error(
                    f"Stream of {schema}.{table} for connection {connection_id} aborted after {sent} rows",
                    exc_info=True,
                    extra=log_fields("get_connection_data_stream", connection_id, schema=schema, table=table, rows=sent),
                )
                raise
            finally:
                rows.close()
            logger.info(
                f"Streamed {sent} rows of {schema}.{table} for connection {connection_id}",
                extra=log_fields("get_connection_data_stream", connection_id, schema=schema, table=table, rows=sent),
            )
            return sent

    # AI

    def get_ai_generated_data(
        self,
        ctx: RequestContext,
        ai_connection_id: str,
        data_connection_id: str,
        schema: str,
        table: str,
        user_prompt: str,
        count: int,
        model_name: str,
    ) -> List[Record]:
        """Generates example rows for a table of the data connection.

        Both connections are authorized. The table's columns (name and type)
        are introspected from the data connection and described to the model.
        """
        with trace_context(ctx.trace_id):
            ai_connection = self._get_connection(ctx, ai_connection_id)
            config = ai_connection.connection_config
            if not isinstance(config, OpenAiConnectionConfig):
                raise BadRequestError(
                    "connection must be a valid openai connection",
                    details={"connection_id": ai_connection_id},
                )

            data_connection = self._get_connection(ctx, data_connection_id)
            with self._adapters.create(data_connection) as adapter:
                columns = self._validate_table(adapter, schema, table)

            ctx.check_cancelled("get_ai_generated_data")
            return self._row_generator.generate(config, model_name, columns, user_prompt, count)
