from typing import List, Optional

import pytest
from sqlalchemy import create_engine, inspect, text

from conndata.adapters.models import AwsS3RunSelector, DatabaseColumn
from conndata.adapters.sql import BaseSqlAdapter

SCHEMA = "main"


class SqliteAdapter(BaseSqlAdapter):
    """Runs the SQL base class against a real SQLite file.

    Registered under the ``postgres`` kind so the stock connection fixtures route to it.
    """

    kind = "postgres"
    drivername = "sqlite"
    path = None

    def build_url(self):
        return f"sqlite:///{self.path}"

    def _connect_args(self):
        return {}

    def get_schema(self, run_selector: Optional[AwsS3RunSelector] = None) -> List[DatabaseColumn]:
        with self._connect("get_schema") as conn:
            insp = inspect(conn)
            return [
                DatabaseColumn(
                    schema=SCHEMA,
                    table=table,
                    column=col["name"],
                    data_type=str(col["type"]),
                    is_nullable=col["nullable"],
                    column_default=col.get("default"),
                )
                for table in insp.get_table_names(schema=SCHEMA)
                for col in insp.get_columns(table, schema=SCHEMA)
            ]

    def get_table_schema(self, schema, table, run_selector=None) -> List[DatabaseColumn]:
        return [c for c in self.get_schema() if c.schema_name == schema and c.table == table]


@pytest.fixture
def sqlite_path(tmp_path):
    path = tmp_path / "app.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, score REAL)"))
        conn.execute(text(
            "INSERT INTO users (id, email, score) VALUES "
            "(1, 'a@example.com', 2.5), (2, NULL, NULL), (3, 'c@example.com', 10)"
        ))
    engine.dispose()
    return path


@pytest.fixture
def sqlite_adapter_cls(sqlite_path):
    """Adapter class bound to the seeded database file."""
    return type("SeededSqliteAdapter", (SqliteAdapter,), {"path": sqlite_path})


@pytest.fixture
def sqlite_adapter(sqlite_adapter_cls, pg_connection):
    adapter = sqlite_adapter_cls(pg_connection)
    yield adapter
    adapter.close()
