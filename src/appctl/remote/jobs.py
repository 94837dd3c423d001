"""Middleware job polling.

Mutating middleware methods return a job id. JobPoller polls core.get_jobs
with exponential backoff until the job reaches a terminal state.
"""

import asyncio
import logging
import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ValidationError

from appctl.core.interfaces.remote import RemoteClient
from appctl.core.logging_schema import Component, LogEvent
from appctl.remote.errors import (
    MiddlewareError,
    parse_app_lifecycle_log,
    parse_middleware_error,
    timeout_error,
)

logger = logging.getLogger(__name__)


class JobState(StrEnum):
    RUNNING = "RUNNING"
    WAITING = "WAITING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    ABORTED = "ABORTED"


class Job(BaseModel):
    """core.get_jobs entry (fields not listed here are ignored)."""

    id: int
    state: str
    error: str | None = None
    result: Any = None
    logs_excerpt: str | None = None


class JobPoller:
    """Polls a middleware job until SUCCESS, FAILED or the deadline.

    Interval starts at `initial`, grows by `multiplier` per poll and is
    capped at `maximum`.
    """

    def __init__(
        self,
        client: RemoteClient,
        initial: float = 0.5,
        maximum: float = 10.0,
        multiplier: float = 1.5,
    ) -> None:
        self._client = client
        self._initial = initial
        self._maximum = maximum
        self._multiplier = multiplier

    async def wait(self, job_id: int, timeout: float | None = None) -> Any:
        """Wait for job completion and return its result.

        A timeout of None polls until the job reaches a terminal state.

        Raises:
            MiddlewareError: Job failed (parsed), vanished (ENOENT) or timed out (ETIMEDOUT)
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        interval = self._initial

        while True:
            if deadline is not None and time.monotonic() >= deadline:
                logger.warning(
                    "Job %d timed out after %.0fs",
                    job_id,
                    timeout,
                    extra={
                        "event": LogEvent.JOB_TIMEOUT,
                        "component": Component.REMOTE,
                        "job_id": job_id,
                    },
                )
                raise timeout_error(job_id, timeout)

            job = await self._get_job(job_id)

            match job.state:
                case JobState.SUCCESS:
                    return job.result
                case JobState.FAILED | JobState.ABORTED:
                    raise await self._job_error(job)

            delay = interval
            if deadline is not None:
                delay = max(0.0, min(interval, deadline - time.monotonic()))
            await asyncio.sleep(delay)
            interval = min(interval * self._multiplier, self._maximum)

    async def _get_job(self, job_id: int) -> Job:
        result = await self._client.call("core.get_jobs", [[["id", "=", job_id]]])
        if not isinstance(result, list):
            raise MiddlewareError(
                code="EINVAL",
                message=f"Unexpected core.get_jobs response for job {job_id}",
                job_id=job_id,
            )
        if not result:
            raise MiddlewareError(
                code="ENOENT",
                message=f"Job {job_id} not found",
                job_id=job_id,
                suggestion="The job may have expired or the ID is incorrect.",
            )
        try:
            return Job.model_validate(result[0])
        except ValidationError as exc:
            raise MiddlewareError(
                code="EINVAL",
                message=f"Failed to parse job {job_id}: {exc}",
                job_id=job_id,
            ) from exc

    async def _job_error(self, job: Job) -> MiddlewareError:
        err = parse_middleware_error(job.error or f"Job {job.id} failed")
        err.job_id = job.id
        err.logs_excerpt = job.logs_excerpt or ""
        if err.log_path:
            err.app_lifecycle_error = await self._fetch_lifecycle_error(err)

        logger.warning(
            "Job %d failed: %s",
            job.id,
            err.message,
            extra={
                "event": LogEvent.JOB_FAILED,
                "component": Component.REMOTE,
                "job_id": job.id,
                "code": err.code,
            },
        )
        return err

    async def _fetch_lifecycle_error(self, err: MiddlewareError) -> str:
        """Read the app lifecycle log; "" on any failure so the job error stands."""
        try:
            content = await self._client.call("filesystem.file_get_contents", [err.log_path])
        except Exception as exc:
            logger.debug("Unable to read %s: %s", err.log_path, exc)
            return ""
        if not isinstance(content, str):
            return ""
        return parse_app_lifecycle_log(content, err.app_action, err.app_name)
