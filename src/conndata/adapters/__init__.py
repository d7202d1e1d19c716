"""Backend adapters: SQL catalogs, S3 run artifacts, and the registry that selects them."""
from conndata.adapters.base import ConnectionAdapter
from conndata.adapters.models import (
    AwsS3RunSelector,
    DatabaseColumn,
    ForeignKey,
    ForeignKeyConstraint,
    InitStatementOptions,
    InitStatements,
    PrimaryKeyConstraint,
    Row,
    RowSink,
    TableConstraints,
    UniqueConstraint,
)
from conndata.adapters.registry import AdapterRegistry, discover_adapters

__all__ = [
    "AdapterRegistry",
    "AwsS3RunSelector",
    "ConnectionAdapter",
    "DatabaseColumn",
    "ForeignKey",
    "ForeignKeyConstraint",
    "InitStatementOptions",
    "InitStatements",
    "PrimaryKeyConstraint",
    "Row",
    "RowSink",
    "TableConstraints",
    "UniqueConstraint",
    "discover_adapters",
]
