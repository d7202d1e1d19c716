from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class JobRun(BaseModel):
    """One execution instance of a job."""

    job_run_id: str
    job_id: str
    started_at: Optional[datetime] = Field(
        default=None, description="Start time; used to order runs newest-first when present."
    )

    model_config = ConfigDict(extra="ignore", frozen=True)
