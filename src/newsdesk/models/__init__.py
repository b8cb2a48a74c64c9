"""Pydantic models for newsdesk domain objects."""

from newsdesk.models.duplicate import (
    DetectionDetail,
    DuplicateFilters,
    DuplicateGroup,
    DuplicateListResponse,
    NewsItem,
    RecommendedAction,
    ResolveDuplicatesRequest,
    RiskLevel,
)
from newsdesk.models.processing import (
    BatchProcessingRequest,
    JobStatus,
    ProcessingJob,
    ProcessingOptions,
)
from newsdesk.models.schedule import (
    ArticleSchedule,
    IntervalUnit,
    PublishChannel,
    RecurrencePattern,
    ScheduledArticle,
    ScheduleForm,
    ScheduleSpec,
    ScheduleStatus,
)

__all__ = [
    "ArticleSchedule",
    "BatchProcessingRequest",
    "DetectionDetail",
    "DuplicateFilters",
    "DuplicateGroup",
    "DuplicateListResponse",
    "IntervalUnit",
    "JobStatus",
    "NewsItem",
    "ProcessingJob",
    "ProcessingOptions",
    "PublishChannel",
    "RecommendedAction",
    "RecurrencePattern",
    "ResolveDuplicatesRequest",
    "RiskLevel",
    "ScheduleForm",
    "ScheduleSpec",
    "ScheduleStatus",
    "ScheduledArticle",
]
