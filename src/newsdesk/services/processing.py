"""AI batch processing job monitor.

Starts batch jobs, lists recent jobs, and forwards cancel/retry requests
after checking them against the job lifecycle.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError

from newsdesk.models.processing import (
    BatchProcessingRequest,
    JobAction,
    ProcessingJob,
    ProcessingOptions,
    can_transition,
)
from newsdesk.services.admin_api import AdminAPIClient, AdminAPIError

logger = structlog.get_logger(__name__)

DEFAULT_JOB_LIMIT = 10


class InvalidJobTransitionError(ValueError):
    """Raised when an action is not allowed from the job's current status."""

    def __init__(self, job_id: str, action: JobAction, message: str):
        super().__init__(message)
        self.job_id = job_id
        self.action = action
        self.message = message


class ProcessingJobService:
    """Job list and operator actions for AI batch processing."""

    def __init__(
        self,
        client: AdminAPIClient,
        options: Optional[ProcessingOptions] = None,
        batch_size: int = 10,
        priority: str = "normal",
    ):
        """Initialize processing job service.

        Args:
            client: Admin API client
            options: Default processing options for new batches
            batch_size: Items per batch
            priority: Queue priority for new batches
        """
        self.client = client
        self.options = options or ProcessingOptions()
        self.batch_size = batch_size
        self.priority = priority

        self.jobs: list[ProcessingJob] = []
        self.loading = False
        self.error: Optional[str] = None

    def get_job(self, job_id: str) -> Optional[ProcessingJob]:
        for job in self.jobs:
            if job.id == job_id:
                return job
        return None

    async def fetch_jobs(self, limit: int = DEFAULT_JOB_LIMIT) -> list[ProcessingJob]:
        """Fetch the most recent jobs.

        On failure the previous list is kept and ``error`` is set.
        """
        self.loading = True
        self.error = None
        try:
            body = await self.client.list_processing_jobs(limit=limit)
            jobs = [ProcessingJob.model_validate(j) for j in body.get("jobs") or []]
        except AdminAPIError as e:
            logger.error("Failed to fetch processing jobs", error=e.message)
            self.error = e.message
            return self.jobs
        except ValidationError as e:
            logger.error("Invalid processing job list", error=str(e))
            self.error = "Invalid processing job list"
            return self.jobs
        finally:
            self.loading = False

        self.jobs = jobs
        logger.debug("Fetched processing jobs", job_count=len(jobs))
        return self.jobs

    async def start_batch(self, **option_overrides: Any) -> Optional[str]:
        """Queue a batch job with the default options plus overrides.

        Args:
            **option_overrides: Processing option values to change for this batch

        Returns:
            The new job ID, or None if the backend rejected the request

        Raises:
            pydantic.ValidationError: If an override is unknown or invalid
        """
        request = BatchProcessingRequest(
            processing_options=self.options.merged(**option_overrides),
            batch_size=self.batch_size,
            priority=self.priority,
        )

        self.loading = True
        self.error = None
        try:
            body = await self.client.start_batch_processing(request)
        except AdminAPIError as e:
            logger.error(
                "Failed to start batch processing",
                status_code=e.status_code,
                error=e.message,
            )
            self.error = e.message
            return None
        finally:
            self.loading = False

        job_id = body.get("job_id")
        logger.info(
            "Batch processing started",
            job_id=job_id,
            batch_size=request.batch_size,
            priority=request.priority,
        )

        await self.fetch_jobs()
        return job_id

    async def _apply(self, job_id: str, action: JobAction) -> bool:
        job = self.get_job(job_id)
        if job is not None and not can_transition(job.status, action.target_status):
            logger.warning(
                "Rejected job action",
                job_id=job_id,
                action=action.value,
                status=job.status.value,
            )
            raise InvalidJobTransitionError(
                job_id,
                action,
                f"Cannot {action.value} job {job_id} in status {job.status.value}",
            )

        self.error = None
        try:
            await self.client.update_job(job_id, action)
        except AdminAPIError as e:
            logger.error(
                "Job action failed",
                job_id=job_id,
                action=action.value,
                status_code=e.status_code,
                error=e.message,
            )
            self.error = e.message
            return False

        logger.info("Job action applied", job_id=job_id, action=action.value)
        await self.fetch_jobs()
        return True

    async def cancel_job(self, job_id: str) -> bool:
        """Cancel a pending or running job.

        Raises:
            InvalidJobTransitionError: If the listed job cannot be cancelled
        """
        return await self._apply(job_id, JobAction.CANCEL)

    async def retry_job(self, job_id: str) -> bool:
        """Put a failed job back in the queue.

        Raises:
            InvalidJobTransitionError: If the listed job is not failed
        """
        return await self._apply(job_id, JobAction.RETRY)

    def dismiss_error(self) -> None:
        self.error = None
