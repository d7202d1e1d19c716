from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Column name -> raw byte payload. None is SQL NULL / JSON null.
Row = Dict[str, Optional[bytes]]


def build_table(schema: str, table: str) -> str:
    """Dotted "schema.table" key used for constraint maps and object-store prefixes."""
    return f"{schema}.{table}"


class DatabaseColumn(BaseModel):
    """One physical (or inferred) column of a table."""

    schema_name: str = Field(..., alias="schema")
    table: str
    column: str
    data_type: str = ""
    is_nullable: bool = True
    column_default: Optional[str] = None
    generated_type: Optional[str] = Field(
        default=None, description="'STORED' / 'VIRTUAL' for generated columns, None otherwise."
    )
    identity_generation: Optional[str] = Field(
        default=None, description="'ALWAYS' / 'BY DEFAULT' for identity columns."
    )

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    @property
    def table_key(self) -> str:
        return build_table(self.schema_name, self.table)


class ForeignKey(BaseModel):
    """Referenced side of a foreign key."""

    table: str = Field(..., description="Referenced table as 'schema.table'.")
    columns: List[str]

    model_config = ConfigDict(extra="ignore", frozen=True)


class ForeignKeyConstraint(BaseModel):
    """A foreign key with owning columns positionally aligned to referenced columns."""

    constraint_name: Optional[str] = None
    columns: List[str]
    not_nullable: List[bool]
    foreign_key: ForeignKey

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="after")
    def _check_alignment(self) -> "ForeignKeyConstraint":
        if not (len(self.columns) == len(self.not_nullable) == len(self.foreign_key.columns)):
            raise ValueError(
                f"foreign key {self.constraint_name or ''} is misaligned: "
                f"{len(self.columns)} columns, {len(self.not_nullable)} not-null flags, "
                f"{len(self.foreign_key.columns)} referenced columns"
            )
        return self

    def column_pairs(self) -> Iterator[Tuple[str, bool, str]]:
        """Yields (column, is_nullable, referenced column) per position."""
        for idx, col in enumerate(self.columns):
            yield col, not self.not_nullable[idx], self.foreign_key.columns[idx]


class PrimaryKeyConstraint(BaseModel):
    columns: List[str]

    model_config = ConfigDict(extra="ignore", frozen=True)


class UniqueConstraint(BaseModel):
    constraint_name: Optional[str] = None
    columns: List[str]

    model_config = ConfigDict(extra="ignore", frozen=True)


class TableConstraints(BaseModel):
    """All key constraints for a schema set, keyed by 'schema.table'."""

    foreign_key_constraints: Dict[str, List[ForeignKeyConstraint]] = Field(default_factory=dict)
    primary_key_constraints: Dict[str, PrimaryKeyConstraint] = Field(default_factory=dict)
    unique_constraints: Dict[str, List[UniqueConstraint]] = Field(default_factory=dict)


class InitStatementOptions(BaseModel):
    init_schema: bool = False
    truncate_before_insert: bool = False
    truncate_cascade: bool = False


class InitStatements(BaseModel):
    table_init_statements: Dict[str, str] = Field(default_factory=dict)
    table_truncate_statements: Dict[str, str] = Field(default_factory=dict)


class AwsS3RunSelector(BaseModel):
    """Locates the run whose artifacts should be read: a run id, or a job to resolve."""

    job_id: Optional[str] = None
    job_run_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="after")
    def _exactly_one(self) -> "AwsS3RunSelector":
        if bool(self.job_id) == bool(self.job_run_id):
            raise ValueError("exactly one of job_id or job_run_id must be set")
        return self


class RowSink(Protocol):
    """Consumer of streamed rows. ``send`` may block to apply backpressure."""

    def send(self, row: Row) -> None:
        ...
