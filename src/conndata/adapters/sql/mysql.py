from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text

from conndata.common.errors import NotFoundError, NotImplementedConnectionError, QueryError
from conndata.adapters.models import AwsS3RunSelector, DatabaseColumn
from .base import FOREIGN_KEY, PRIMARY_KEY, UNIQUE, BaseSqlAdapter, ConstraintRecord
from .queries import mysql_columns_query, mysql_constraints_query

# ER_NO_SUCH_TABLE
NO_SUCH_TABLE = 1146

CONSTRAINT_TYPES = {
    "FOREIGN KEY": FOREIGN_KEY,
    "PRIMARY KEY": PRIMARY_KEY,
    "UNIQUE": UNIQUE,
}


def driver_error_code(error: QueryError) -> Optional[int]:
    """PyMySQL errno behind a translated query error, if any."""
    orig = getattr(error.__cause__, "orig", None)
    args = getattr(orig, "args", None)
    if args and isinstance(args[0], int):
        return args[0]
    return None


class MysqlAdapter(BaseSqlAdapter):
    """MySQL adapter reading ``information_schema`` through PyMySQL."""

    kind = "mysql"
    drivername = "mysql+pymysql"

    def build_url(self):
        protocol = self.config.protocol or "tcp"
        if self.config.url is None and protocol != "tcp":
            raise NotImplementedConnectionError(
                f"MySQL protocol '{protocol}' is not supported",
                details={"operation": "connect", "connection_id": self.connection_id},
            )
        return super().build_url()

    def get_schema(self, run_selector: Optional[AwsS3RunSelector] = None) -> List[DatabaseColumn]:
        with self._connect("get_schema") as conn:
            return [self._column_from_row(row) for row in conn.execute(mysql_columns_query())]

    def get_table_schema(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        # information_schema is read once and filtered here.
        return [
            col for col in self.get_schema()
            if col.schema_name == schema and col.table == table
        ]

    def _fetch_constraints(self, schemas: Sequence[str]) -> List[ConstraintRecord]:
        with self._connect("get_table_constraints") as conn:
            rows = conn.execute(mysql_constraints_query(), {"schemas": list(schemas)}).fetchall()

        grouped: Dict[Tuple[str, str, str], ConstraintRecord] = OrderedDict()
        for row in rows:
            values = row._mapping
            key = (values["schema_name"], values["table_name"], values["constraint_name"])
            record = grouped.get(key)
            if record is None:
                record = ConstraintRecord(
                    constraint_name=values["constraint_name"],
                    constraint_type=CONSTRAINT_TYPES[values["constraint_type"]],
                    schema_name=values["schema_name"],
                    table_name=values["table_name"],
                    foreign_schema_name=values["foreign_schema_name"],
                    foreign_table_name=values["foreign_table_name"],
                )
                grouped[key] = record
            record.columns.append(values["column_name"])
            record.not_nullable.append(bool(values["not_nullable"]))
            if values["foreign_column_name"] is not None:
                record.foreign_columns.append(values["foreign_column_name"])
        return list(grouped.values())

    def get_create_statement(self, schema: str, table: str) -> str:
        try:
            with self._connect("get_create_statement") as conn:
                row = conn.execute(text(f"SHOW CREATE TABLE {self.qualified_table(schema, table)}")).one()
        except QueryError as e:
            if driver_error_code(e) == NO_SUCH_TABLE:
                raise NotFoundError(
                    f"Table {schema}.{table} does not exist",
                    details={"operation": "get_create_statement", "connection_id": self.connection_id},
                ) from e
            raise
        return f"{row[1]};"

    def get_truncate_statement(self, schema: str, table: str, cascade: bool) -> str:
        # MySQL has no TRUNCATE ... CASCADE; the flag is accepted and ignored.
        return f"TRUNCATE {self.qualified_table(schema, table)};"
