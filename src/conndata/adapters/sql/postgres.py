from typing import Any, Dict, List, Optional, Sequence

from conndata.common.errors import NotFoundError, NotImplementedConnectionError
from conndata.adapters.coerce import encode_date, encode_pg_bool, encode_uuid
from conndata.adapters.models import AwsS3RunSelector, DatabaseColumn, InitStatementOptions
from .base import BaseSqlAdapter, ConstraintRecord, Encoder
from .queries import (
    postgres_columns_query,
    postgres_constraints_query,
    postgres_table_columns_query,
    postgres_table_constraints_query,
)

BOOL_OID = 16
DATE_OID = 1082
UUID_OID = 2950


class PostgresAdapter(BaseSqlAdapter):
    """Postgres adapter reading ``pg_catalog`` through psycopg2."""

    kind = "postgres"
    drivername = "postgresql+psycopg2"

    TYPE_ENCODERS: Dict[int, Encoder] = {
        BOOL_OID: encode_pg_bool,
        DATE_OID: encode_date,
        UUID_OID: encode_uuid,
    }

    def _url_query(self) -> Dict[str, str]:
        if self.config.ssl_mode:
            return {"sslmode": self.config.ssl_mode}
        return {}

    def encoder_for(self, type_code: Any) -> Encoder:
        return self.TYPE_ENCODERS.get(type_code, super().encoder_for(type_code))

    def get_schema(self, run_selector: Optional[AwsS3RunSelector] = None) -> List[DatabaseColumn]:
        with self._connect("get_schema") as conn:
            return [self._column_from_row(row) for row in conn.execute(postgres_columns_query())]

    def get_table_schema(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        with self._connect("get_table_schema") as conn:
            rows = conn.execute(postgres_table_columns_query(), {"schema": schema, "table": table})
            return [self._column_from_row(row) for row in rows]

    def _fetch_constraints(self, schemas: Sequence[str]) -> List[ConstraintRecord]:
        with self._connect("get_table_constraints") as conn:
            rows = conn.execute(postgres_constraints_query(), {"schemas": list(schemas)})
            return [self._constraint_from_row(row) for row in rows]

    @staticmethod
    def _constraint_from_row(row: Any) -> ConstraintRecord:
        values = row._mapping
        return ConstraintRecord(
            constraint_name=values["constraint_name"],
            constraint_type=values["constraint_type"],
            schema_name=values["schema_name"],
            table_name=values["table_name"],
            columns=list(values["constraint_columns"] or []),
            not_nullable=list(values["not_nullable"] or []),
            foreign_schema_name=values["foreign_schema_name"],
            foreign_table_name=values["foreign_table_name"],
            foreign_columns=list(values["foreign_column_names"] or []),
        )

    def _column_definition(self, column: DatabaseColumn) -> str:
        parts = [self.quote(column.column), column.data_type]
        if column.identity_generation:
            parts.append(f"GENERATED {column.identity_generation} AS IDENTITY")
        elif column.generated_type:
            parts.append(f"GENERATED ALWAYS AS ({column.column_default}) {column.generated_type}")
        elif column.column_default is not None:
            parts.append(f"DEFAULT {column.column_default}")
        if not column.is_nullable:
            parts.append("NOT NULL")
        return " ".join(parts)

    def get_create_statement(self, schema: str, table: str) -> str:
        """
        Synthesizes ``CREATE TABLE IF NOT EXISTS`` from the catalog: columns with
        defaults, identity and generated expressions, followed by every primary,
        unique, foreign and check constraint definition.
        """
        columns = self.get_table_schema(schema, table)
        if not columns:
            raise NotFoundError(
                f"Table {schema}.{table} does not exist",
                details={"operation": "get_create_statement", "connection_id": self.connection_id},
            )

        with self._connect("get_create_statement") as conn:
            constraint_rows = conn.execute(
                postgres_table_constraints_query(), {"schema": schema, "table": table}
            ).fetchall()

        definitions = [self._column_definition(c) for c in columns]
        for row in constraint_rows:
            values = row._mapping
            definitions.append(
                f"CONSTRAINT {self.quote(values['constraint_name'])} {values['constraint_definition']}"
            )
        body = ", ".join(definitions)
        return f"CREATE TABLE IF NOT EXISTS {self.qualified_table(schema, table)} ({body});"

    def truncates_for(self, options: InitStatementOptions) -> Optional[bool]:
        """``truncate_cascade`` selects cascading truncates; ``truncate_before_insert`` alone is unsupported."""
        if options.truncate_cascade:
            return True
        if options.truncate_before_insert:
            raise NotImplementedConnectionError(
                "Postgres truncate without cascade is not supported",
                details={"operation": "get_connection_init_statements", "connection_id": self.connection_id},
            )
        return None

    def get_truncate_statement(self, schema: str, table: str, cascade: bool) -> str:
        """
        Only cascading truncates are produced. A plain truncate would need the
        tables ordered by foreign key dependencies, which is not computed here.
        """
        if not cascade:
            raise NotImplementedConnectionError(
                "Postgres truncate without cascade is not supported",
                details={"operation": "get_truncate_statement", "connection_id": self.connection_id},
            )
        return f"TRUNCATE {self.qualified_table(schema, table)} CASCADE;"
