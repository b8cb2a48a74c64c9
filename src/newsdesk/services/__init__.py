"""Service layer for newsdesk admin operations."""

from newsdesk.services.admin_api import (
    AdminAPIClient,
    AdminAPIError,
    get_admin_api_client,
)
from newsdesk.services.duplicate_resolution import (
    BulkResolutionResult,
    DuplicateResolutionService,
    InvalidResolutionError,
)
from newsdesk.services.processing import (
    InvalidJobTransitionError,
    ProcessingJobService,
)
from newsdesk.services.recurrence import (
    parse_custom_interval,
    project_publication_dates,
    project_schedule,
)
from newsdesk.services.scheduling import (
    ScheduleValidationError,
    SchedulingService,
    validate_schedule_form,
)

__all__ = [
    "AdminAPIClient",
    "AdminAPIError",
    "BulkResolutionResult",
    "DuplicateResolutionService",
    "InvalidJobTransitionError",
    "InvalidResolutionError",
    "ProcessingJobService",
    "ScheduleValidationError",
    "SchedulingService",
    "get_admin_api_client",
    "parse_custom_interval",
    "project_publication_dates",
    "project_schedule",
    "validate_schedule_form",
]
