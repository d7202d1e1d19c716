from __future__ import annotations

from importlib.metadata import entry_points
from typing import Dict, Optional, Type

from conndata.common.errors import NotImplementedConnectionError
from conndata.common.logger import get_logger
from conndata.connections.models import Connection
from conndata.jobs.registry import JobRunRegistry
from .base import ConnectionAdapter
from .s3.adapter import AwsS3Adapter
from .sql.mysql import MysqlAdapter
from .sql.postgres import PostgresAdapter

logger = get_logger(__name__)

ADAPTER_ENTRY_POINT_GROUP = "conndata.adapters"

BUILTIN_ADAPTERS: Dict[str, Type[ConnectionAdapter]] = {
    PostgresAdapter.kind: PostgresAdapter,
    MysqlAdapter.kind: MysqlAdapter,
    AwsS3Adapter.kind: AwsS3Adapter,
}


def discover_adapters() -> Dict[str, Type[ConnectionAdapter]]:
    """Discovers installed adapters via 'conndata.adapters' entry points.

    Returns:
        Dict[str, Type[ConnectionAdapter]]: Dict mapping connection kind (e.g., 'postgres')
            to the Adapter Class.
    """
    adapters = {}
    for ep in entry_points(group=ADAPTER_ENTRY_POINT_GROUP):
        try:
            adapters[ep.name] = ep.load()
        except Exception as e:
            logger.error(f"Failed to load adapter {ep.name}: {e}")
    return adapters


class AdapterRegistry:
    """
    Maps connection backend kinds to adapter classes and builds one adapter
    per request. Nothing is cached across requests.
    """

    def __init__(
        self,
        adapters: Optional[Dict[str, Type[ConnectionAdapter]]] = None,
        job_runs: Optional[JobRunRegistry] = None,
        discover: bool = True,
    ):
        """
        Args:
            adapters: Explicit kind -> adapter class table. Defaults to the built-ins.
            job_runs: Run history used by object-store adapters to resolve job ids.
            discover: Merge entry-point adapters over the table; plugins replace built-ins.
        """
        self._adapters: Dict[str, Type[ConnectionAdapter]] = dict(
            BUILTIN_ADAPTERS if adapters is None else adapters
        )
        if discover:
            self._adapters.update(discover_adapters())
        self._job_runs = job_runs

    def register(self, kind: str, adapter_cls: Type[ConnectionAdapter]) -> None:
        self._adapters[kind] = adapter_cls

    def kinds(self) -> list[str]:
        return sorted(self._adapters)

    def create(self, connection: Connection) -> ConnectionAdapter:
        """Instantiates the adapter for ``connection``'s backend kind.

        Raises:
            NotImplementedConnectionError: No adapter handles the kind.
        """
        kind = connection.connection_config.type
        adapter_cls = self._adapters.get(kind)
        if adapter_cls is None:
            raise NotImplementedConnectionError(
                f"This connection type is not currently supported: {kind}",
                details={"connection_id": connection.id, "available": self.kinds()},
            )
        return adapter_cls.from_connection(connection, job_runs=self._job_runs)
