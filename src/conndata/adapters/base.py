from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence

from conndata.common.cancellation import CancellationToken
from conndata.common.errors import NotImplementedConnectionError
from conndata.connections.models import Connection
from .models import (
    AwsS3RunSelector,
    DatabaseColumn,
    ForeignKeyConstraint,
    InitStatementOptions,
    PrimaryKeyConstraint,
    Row,
    TableConstraints,
    UniqueConstraint,
)


class ConnectionAdapter(ABC):
    """Canonical interface every backend adapter implements.

    Introspection and streaming are mandatory. Constraint, DDL and row count
    operations default to raising ``NotImplementedConnectionError`` so that
    backends without a catalog (object stores) fail loudly instead of
    returning empty results.
    """

    kind: str = ""
    has_catalog: bool = True

    def __init__(self, connection: Connection):
        self.connection = connection

    @classmethod
    def from_connection(cls, connection: Connection, **options: Any) -> "ConnectionAdapter":
        """Factory used by the adapter registry. Unused options are ignored."""
        return cls(connection)

    @property
    def connection_id(self) -> str:
        return self.connection.id

    def __str__(self):
        return f"{self.connection_id} ({self.kind})"

    def close(self) -> None:
        """Release any backend resources held by the adapter."""
        pass

    def resolve_selector(self, run_selector: Optional[AwsS3RunSelector]) -> Optional[AwsS3RunSelector]:
        """Pins the data source for a request. Catalog backends ignore the selector."""
        return run_selector

    def require_catalog(self, operation: str) -> None:
        if not self.has_catalog:
            raise self._not_implemented(operation)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def get_schema(self, run_selector: Optional[AwsS3RunSelector] = None) -> List[DatabaseColumn]:
        """Return one column per physical (or inferred) column of every table."""
        pass

    @abstractmethod
    def get_table_schema(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
    ) -> List[DatabaseColumn]:
        """Return the columns of a single table."""
        pass

    @abstractmethod
    def stream_rows(
        self,
        schema: str,
        table: str,
        run_selector: Optional[AwsS3RunSelector] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Iterator[Row]:
        """Lazily yield every row of a table. Resources are released when the generator closes."""
        pass

    def get_foreign_keys(self, schemas: Sequence[str]) -> Dict[str, List[ForeignKeyConstraint]]:
        raise self._not_implemented("get_foreign_keys")

    def get_primary_keys(self, schemas: Sequence[str]) -> Dict[str, PrimaryKeyConstraint]:
        raise self._not_implemented("get_primary_keys")

    def get_unique_constraints(self, schemas: Sequence[str]) -> Dict[str, List[UniqueConstraint]]:
        raise self._not_implemented("get_unique_constraints")

    def get_table_constraints(self, schemas: Sequence[str]) -> TableConstraints:
        return TableConstraints(
            foreign_key_constraints=self.get_foreign_keys(schemas),
            primary_key_constraints=self.get_primary_keys(schemas),
            unique_constraints=self.get_unique_constraints(schemas),
        )

    def get_create_statement(self, schema: str, table: str) -> str:
        raise self._not_implemented("get_create_statement")

    def truncates_for(self, options: InitStatementOptions) -> Optional[bool]:
        """Cascade flag for the truncates ``options`` asks for, None when no truncate is wanted.

        Only ``truncate_before_insert`` requests a truncate here; backends
        with cascading truncates override this.
        """
        if options.truncate_before_insert:
            return options.truncate_cascade
        return None

    def get_truncate_statement(self, schema: str, table: str, cascade: bool) -> str:
        raise self._not_implemented("get_truncate_statement")

    def get_row_count(self, schema: str, table: str, where_clause: Optional[str] = None) -> int:
        raise self._not_implemented("get_row_count")

    def _not_implemented(self, operation: str) -> NotImplementedConnectionError:
        return NotImplementedConnectionError(
            f"{operation} is not supported for {self.kind or type(self).__name__} connections",
            details={"operation": operation, "connection_id": self.connection_id},
        )
