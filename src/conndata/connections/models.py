from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional, Union, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ConnectionType(str, Enum):
    """Backend kinds a connection can point at."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    AWS_S3 = "aws_s3"
    OPENAI = "openai"


class SqlConnectionConfig(BaseModel):
    """Shared fields of the SQL backends.

    Either ``url`` (a full SQLAlchemy URL) or the discrete host fields are used.
    """

    url: Optional[SecretStr] = Field(default=None, description="Full SQLAlchemy connection URL.")
    host: Optional[str] = None
    port: Optional[int] = None
    name: Optional[str] = Field(default=None, description="Database name.")
    user: Optional[str] = None
    password: Optional[SecretStr] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class PostgresConnectionConfig(SqlConnectionConfig):
    type: Literal["postgres"] = "postgres"
    ssl_mode: Optional[str] = Field(default=None, description="libpq sslmode, e.g. 'require'.")


class MysqlConnectionConfig(SqlConnectionConfig):
    type: Literal["mysql"] = "mysql"
    protocol: Optional[str] = Field(default="tcp", description="Only 'tcp' is supported.")


class AwsS3Credentials(BaseModel):
    profile: Optional[str] = None
    access_key_id: Optional[SecretStr] = None
    secret_access_key: Optional[SecretStr] = None
    session_token: Optional[SecretStr] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class AwsS3ConnectionConfig(BaseModel):
    type: Literal["aws_s3"] = "aws_s3"
    bucket: str
    region: Optional[str] = None
    endpoint: Optional[str] = Field(default=None, description="Custom endpoint for S3-compatible stores.")
    credentials: Optional[AwsS3Credentials] = None

    model_config = ConfigDict(extra="ignore", frozen=True)


class OpenAiConnectionConfig(BaseModel):
    type: Literal["openai"] = "openai"
    api_url: Optional[str] = None
    api_key: SecretStr

    model_config = ConfigDict(extra="ignore", frozen=True)


ConnectionConfig = Annotated[
    Union[
        PostgresConnectionConfig,
        MysqlConnectionConfig,
        AwsS3ConnectionConfig,
        OpenAiConnectionConfig,
    ],
    Field(discriminator="type"),
]


class Connection(BaseModel):
    """A stored connection: identity, owning account and backend configuration."""

    id: str
    name: Optional[str] = None
    account_id: str
    connection_config: ConnectionConfig

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def connection_type(self) -> ConnectionType:
        return ConnectionType(self.connection_config.type)
