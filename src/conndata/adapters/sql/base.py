from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import URL, Connection as SAConnection
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from conndata.common.cancellation import CancellationToken
from conndata.common.errors import ConnectionFailedError, QueryError
from conndata.common.logger import get_logger
from conndata.common.settings import settings
from conndata.connections.models import Connection
from conndata.adapters.base import ConnectionAdapter
from conndata.adapters.coerce import encode_value
from conndata.adapters.models import (
    AwsS3RunSelector,
    DatabaseColumn,
    ForeignKey,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    Row,
    TableConstraints,
    UniqueConstraint,
    build_table,
)

logger = get_logger(__name__)

Encoder = Callable[[Any], Optional[bytes]]

FOREIGN_KEY = "f"
PRIMARY_KEY = "p"
UNIQUE = "u"


@dataclass
class ConstraintRecord:
    """Backend-neutral view of one catalog constraint."""

    constraint_name: str
    constraint_type: str
    schema_name: str
    table_name: str
    columns: List[str] = field(default_factory=list)
    not_nullable: List[bool] = field(default_factory=list)
    foreign_schema_name: Optional[str] = None
    foreign_table_name: Optional[str] = None
    foreign_columns: List[str] = field(default_factory=list)

    @property
    def table_key(self) -> str:
        return build_table(self.schema_name, self.table_name)


class BaseSqlAdapter(ConnectionAdapter):
    """
    Base class for all SQLAlchemy-based adapters.
    Implements connection scoping, error translation, constraint assembly and
    row streaming. Dialects supply the URL, catalog queries and DDL.
    """

    drivername: str = ""

    def __init__(self, connection: Connection, connect_timeout: Optional[int] = None):
        super().__init__(connection)
        self.connect_timeout = connect_timeout if connect_timeout is not None else settings.connection_timeout_sec
        self._engine: Optional[Engine] = None

    @property
    def config(self):
        return self.connection.connection_config

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(
                self.build_url(),
                connect_args=self._connect_args(),
                poolclass=NullPool,
            )
        return self._engine

    def build_url(self) -> URL | str:
        """SQLAlchemy URL for this connection; a configured ``url`` wins over discrete fields."""
        if self.config.url is not None:
            return self.config.url.get_secret_value()
        return URL.create(
            self.drivername,
            username=self.config.user,
            password=self.config.password.get_secret_value() if self.config.password else None,
            host=self.config.host,
            port=self.config.port,
            database=self.config.name,
            query=self._url_query(),
        )

    def _url_query(self) -> Dict[str, str]:
        return {}

    def _connect_args(self) -> Dict[str, Any]:
        return {"connect_timeout": self.connect_timeout}

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @contextmanager
    def _connect(self, operation: str) -> Iterator[SAConnection]:
        """Opens one connection for ``operation`` and translates driver errors.

        With ``NullPool`` the DBAPI connection is closed on exit, on every path.
        """
        details = {"operation": operation, "connection_id": self.connection_id}
        try:
            with self.engine.connect() as conn:
                yield conn
        except OperationalError as e:
            logger.error(f"Connection failure during {operation} for {self}: {e}")
            raise ConnectionFailedError(f"Unable to connect to database: {e.orig}", details=details) from e
        except DBAPIError as e:
            logger.error(f"Query failure during {operation} for {self}: {e}")
            raise QueryError(f"Database query failed: {e.orig}", details=details) from e
        except SQLAlchemyError as e:
            logger.error(f"SQLAlchemy failure during {operation} for {self}: {e}")
            raise QueryError(f"Database query failed: {e}", details=details) from e

    def quote(self, identifier: str) -> str:
        return self.engine.dialect.identifier_preparer.quote_identifier(identifier)

    def qualified_table(self, schema: str, table: str) -> str:
        return f"{self.quote(schema)}.{self.quote(table)}"

    # Introspection

    def _column_from_row(self, row: Any) -> DatabaseColumn:
        values = row._mapping
        return DatabaseColumn(
            schema=values["table_schema"],
            table=values["table_name"],
            column=values["column_name"],
            data_type=values["data_type"] or "",
            is_nullable=bool(values["is_nullable"]),
            column_default=values["column_default"],
            generated_type=values.get("generated_type"),
            identity_generation=values.get("identity_generation"),
        )

    def _fetch_constraints(self, schemas: Sequence[str]) -> List[ConstraintRecord]:
        raise NotImplementedError

    def get_table_constraints(self, schemas: Sequence[str]) -> TableConstraints:
        if not schemas:
            return TableConstraints()

        records = self._fetch_constraints(list(schemas))
        constraints = TableConstraints()
        try:
            for record in records:
                key = record.table_key
                if record.constraint_type == FOREIGN_KEY:
                    constraints.foreign_key_constraints.setdefault(key, []).append(
                        ForeignKeyConstraint(
                            constraint_name=record.constraint_name,
                            columns=record.columns,
                            not_nullable=record.not_nullable,
                            foreign_key=ForeignKey(
                                table=build_table(record.foreign_schema_name, record.foreign_table_name),
                                columns=record.foreign_columns,
                            ),
                        )
                    )
                elif record.constraint_type == PRIMARY_KEY:
                    constraints.primary_key_constraints[key] = PrimaryKeyConstraint(columns=record.columns)
                elif record.constraint_type == UNIQUE:
                    constraints.unique_constraints.setdefault(key, []).append(
                        UniqueConstraint(constraint_name=record.constraint_name, columns=record.columns)
                    )
        except ValidationError as e:
            raise QueryError(
                f"Catalog returned a malformed constraint: {e}",
                details={"operation": "get_table_constraints", "connection_id": self.connection_id},
            ) from e
        return constraints

    def get_foreign_keys(self, schemas: Sequence[str]) -> Dict[str, List[ForeignKeyConstraint]]:
        return self.get_table_constraints(schemas).foreign_key_constraints

    def get_primary_keys(self, schemas: Sequence[str]) -> Dict[str, PrimaryKeyConstraint]:
        return self.get_table_constraints(schemas).primary_key_constraints

    def get_unique_constraints(self, schemas: Sequence[str]) -> Dict[str, List[UniqueConstraint]]:
        return self.get_table_constraints(schemas).unique_constraints

    def get_row_count(self, schema: str, table: str, where_clause: Optional[str] = None) -> int:
        """
        Counts rows of a table. ``where_clause`` is appended verbatim; the caller
        is responsible for sanitizing it.
        """
        sql = f"SELECT COUNT(*) FROM {self.qualified_table(schema, table)}"
        if where_clause:
            sql = f"{sql} WHERE {where_clause}"
        with self._connect("get_row_count") as conn:
            return int(conn.execute(text(sql)).scalar() or 0)

    # Streaming

    def encoder_for(self, type_code: Any) -> Encoder:
        """Value encoder for a DBAPI ``cursor.description`` type code."""
        return encode_value

    def stream_rows(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[Row]:
        table_ref = self.qualified_table(schema, table)
        with self._connect("stream_rows") as conn:
            # Read the live column set and type codes; zero rows is fine.
            sample = conn.execute(text(f"SELECT * FROM {table_ref} LIMIT 1"))
            columns = list(sample.keys())
            description = sample.cursor.description if sample.cursor is not None else None
            type_codes = [d[1] for d in description] if description else [None] * len(columns)
            sample.close()

            encoders = [self.encoder_for(code) for code in type_codes]
            select_list = ", ".join(self.quote(c) for c in columns)
            logger.debug(f"Streaming {len(columns)} columns from {table_ref} for {self}")

            result = conn.execution_options(stream_results=True).execute(
                text(f"SELECT {select_list} FROM {table_ref}")
            )
            try:
                for record in result:
                    if cancellation is not None:
                        cancellation.raise_if_cancelled("stream_rows")
                    yield {col: encoders[idx](record[idx]) for idx, col in enumerate(columns)}
            finally:
                result.close()
