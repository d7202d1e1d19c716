"""Resolves a job to its most recent run that left data in the bucket."""
from typing import Any, List

from botocore.exceptions import BotoCoreError, ClientError

from conndata.common.errors import NotFoundError
from conndata.common.logger import get_logger
from conndata.jobs.models import JobRun
from conndata.jobs.registry import JobRunRegistry
from .client import translate_aws_error

logger = get_logger(__name__)


def activities_prefix(run_id: str) -> str:
    return f"workflows/{run_id}/activities/"


def order_newest_first(runs: List[JobRun]) -> List[JobRun]:
    """
    Sorts by ``started_at`` descending when every run has one. Otherwise the
    registry's order is taken as newest-last and reversed.
    """
    if runs and all(run.started_at is not None for run in runs):
        return sorted(runs, key=lambda run: run.started_at, reverse=True)
    return list(reversed(runs))


def run_has_data(s3_client: Any, bucket: str, run_id: str) -> bool:
    response = s3_client.list_objects_v2(
        Bucket=bucket,
        Prefix=activities_prefix(run_id),
        Delimiter="/",
    )
    return response.get("KeyCount", 0) > 0


def find_latest_run_with_data(
    job_runs: JobRunRegistry,
    s3_client: Any,
    bucket: str,
    job_id: str,
) -> str:
    """Scans the job's runs newest-first; returns the first with listed content.

    Raises:
        NotFoundError: No run of the job has data under its activities prefix.
        ConnectionFailedError: The bucket could not be reached or read.
    """
    runs = order_newest_first(job_runs.get_recent_runs(job_id))
    for run in runs:
        try:
            if run_has_data(s3_client, bucket, run.job_run_id):
                logger.info(f"Resolved job {job_id} to run {run.job_run_id}")
                return run.job_run_id
        except (ClientError, BotoCoreError) as e:
            raise translate_aws_error(
                e,
                f"Unable to list objects for run {run.job_run_id}",
                {"operation": "find_latest_run_with_data", "job_id": job_id, "bucket": bucket},
            ) from e
        logger.debug(f"Run {run.job_run_id} of job {job_id} has no data, checking older runs")

    raise NotFoundError(
        f"Unable to find latest job run with data for job {job_id}",
        details={"operation": "find_latest_run_with_data", "job_id": job_id, "runs_checked": len(runs)},
    )
