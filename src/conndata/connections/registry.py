from __future__ import annotations

from typing import Dict, Iterable, List, Protocol

from conndata.common.errors import NotFoundError
from .models import Connection


class ConnectionRegistry(Protocol):
    """Lookup of stored connections by id."""

    def get_connection(self, connection_id: str) -> Connection:
        """Return the connection or raise NotFoundError."""
        ...


class InMemoryConnectionRegistry:
    """
    Holds a fixed set of connections, typically loaded from connections.yaml.
    """

    def __init__(self, connections: Iterable[Connection] = ()):
        self._connections: Dict[str, Connection] = {}
        for connection in connections:
            self.register(connection)

    def register(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def get_connection(self, connection_id: str) -> Connection:
        try:
            return self._connections[connection_id]
        except KeyError:
            raise NotFoundError(
                f"Connection '{connection_id}' not found",
                details={"connection_id": connection_id},
            ) from None

    def list_connections(self) -> List[Connection]:
        return list(self._connections.values())
