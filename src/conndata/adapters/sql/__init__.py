from .base import BaseSqlAdapter, ConstraintRecord
from .mysql import MysqlAdapter
from .postgres import PostgresAdapter

__all__ = ["BaseSqlAdapter", "ConstraintRecord", "MysqlAdapter", "PostgresAdapter"]
