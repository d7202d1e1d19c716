from .models import JobRun
from .registry import JobRunRegistry, InMemoryJobRunRegistry

__all__ = ["JobRun", "JobRunRegistry", "InMemoryJobRunRegistry"]
