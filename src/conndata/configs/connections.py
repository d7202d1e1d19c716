from typing import List

from pydantic import BaseModel, Field

from conndata.connections.models import Connection


class ConnectionsFileConfig(BaseModel):
    """File-level schema for connections.yaml."""
    version: int = Field(1, description="Schema version")
    connections: List[Connection] = Field(default_factory=list)
