from typing import List

from pydantic import BaseModel, Field

from conndata.jobs.models import JobRun


class JobRunsFileConfig(BaseModel):
    """File-level schema for job_runs.yaml. Runs are listed oldest first."""
    version: int = Field(1, description="Schema version")
    runs: List[JobRun] = Field(default_factory=list)
