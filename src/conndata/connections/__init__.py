"""Connection records and the registry that serves them."""
from conndata.connections.models import (
    AwsS3ConnectionConfig,
    AwsS3Credentials,
    Connection,
    ConnectionConfig,
    ConnectionType,
    MysqlConnectionConfig,
    OpenAiConnectionConfig,
    PostgresConnectionConfig,
)
from conndata.connections.registry import ConnectionRegistry, InMemoryConnectionRegistry

__all__ = [
    "AwsS3ConnectionConfig",
    "AwsS3Credentials",
    "Connection",
    "ConnectionConfig",
    "ConnectionType",
    "MysqlConnectionConfig",
    "OpenAiConnectionConfig",
    "PostgresConnectionConfig",
    "ConnectionRegistry",
    "InMemoryConnectionRegistry",
]
