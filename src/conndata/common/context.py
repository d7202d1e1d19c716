"""Explicit per-request context passed to every service entry point."""
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from conndata.auth.models import UserContext
from conndata.common.cancellation import CancellationToken


class RequestContext(BaseModel):
    """Identity, trace metadata and cancellation for a single request."""

    user: Optional[UserContext] = None
    trace_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    cancellation: CancellationToken = Field(default_factory=CancellationToken)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def check_cancelled(self, operation: str = "") -> None:
        self.cancellation.raise_if_cancelled(operation)
