"""Models for AI batch processing jobs."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class JobStatus(str, Enum):
    """Lifecycle of an AI processing job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.CANCELLED}),
    JobStatus.PROCESSING: frozenset(
        {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}
    ),
    JobStatus.FAILED: frozenset({JobStatus.PENDING}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


class JobAction(str, Enum):
    """Operator actions on a job and the status each one moves it to."""

    CANCEL = "cancel"
    RETRY = "retry"

    @property
    def target_status(self) -> JobStatus:
        if self is JobAction.CANCEL:
            return JobStatus.CANCELLED
        return JobStatus.PENDING


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Check whether a job may move from one status to another."""
    return target in JOB_TRANSITIONS[current]


class ProcessingOptions(BaseModel):
    """Which AI steps a batch job runs.

    Unknown option names are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    generate_summary: bool = True
    extract_keywords: bool = True
    calculate_relevance: bool = True
    detect_duplicates: bool = True
    categorize: bool = True
    translate: bool = False
    target_language: Optional[Literal["es", "en"]] = None

    @model_validator(mode="after")
    def translation_needs_language(self) -> "ProcessingOptions":
        """Translation is meaningless without a target language."""
        if self.translate and self.target_language is None:
            raise ValueError("target_language is required when translate is enabled")
        return self

    def merged(self, **overrides: Any) -> "ProcessingOptions":
        """Return a validated copy with the given options replaced."""
        return ProcessingOptions(**{**self.model_dump(), **overrides})


class JobProgress(BaseModel):
    """Item counts for a job."""

    total_items: int = 0
    processed_items: int = 0
    failed_items: int = 0
    skipped_items: int = 0
    percentage: float = 0.0


class JobTiming(BaseModel):
    """Timestamps and throughput for a job."""

    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    processing_rate_per_minute: float = 0.0
    estimated_remaining_minutes: Optional[float] = None


class ProcessingJob(BaseModel):
    """An AI batch processing job as reported by the status endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    status: JobStatus
    progress: JobProgress = Field(default_factory=JobProgress)
    timing: JobTiming = Field(default_factory=JobTiming)
    processing_options: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    @property
    def can_cancel(self) -> bool:
        return can_transition(self.status, JobStatus.CANCELLED)

    @property
    def can_retry(self) -> bool:
        return can_transition(self.status, JobStatus.PENDING)


class BatchProcessingRequest(BaseModel):
    """Body of POST /api/admin/ai/process-batch."""

    processing_options: ProcessingOptions = Field(default_factory=ProcessingOptions)
    batch_size: int = Field(default=10, ge=1, le=100)
    priority: Literal["low", "normal", "high"] = "normal"
