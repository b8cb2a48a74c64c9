"""Article publication scheduling service.

Validates schedule forms, previews recurring publication dates and talks to
the scheduling endpoints of the admin API.
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from pydantic import BaseModel, ValidationError

from newsdesk.config import settings
from newsdesk.models.schedule import (
    ArticleSchedule,
    RecurrencePattern,
    ScheduledArticle,
    ScheduleForm,
    ScheduleStatus,
    can_transition,
)
from newsdesk.services.admin_api import AdminAPIClient, AdminAPIError
from newsdesk.services.recurrence import (
    parse_custom_interval,
    project_publication_dates,
)

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ScheduleValidationError(ValueError):
    """Raised when a schedule form fails validation before submission."""

    def __init__(self, errors: dict[str, str]):
        super().__init__(
            "; ".join(f"{field}: {message}" for field, message in errors.items())
        )
        self.errors = errors


def _resolve_timezone(name: str) -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def validate_schedule_form(
    form: ScheduleForm,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """Check a schedule form before it is submitted.

    A naive ``scheduled_at`` is read in the form's timezone. A naive ``now``
    is read as UTC.

    Args:
        form: Operator input
        now: Reference time (defaults to the current UTC time)

    Returns:
        Field name to error message; empty when the form is valid
    """
    errors: dict[str, str] = {}
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    tz = None
    if not form.timezone.strip():
        errors["timezone"] = "Timezone is required"
    else:
        tz = _resolve_timezone(form.timezone)
        if tz is None:
            errors["timezone"] = f"Unknown timezone: {form.timezone}"

    scheduled_at = form.scheduled_at
    if scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=tz or timezone.utc)
    if scheduled_at < now:
        errors["scheduled_at"] = "Scheduled time must be in the future"

    if not form.publish_channels:
        errors["publish_channels"] = "Select at least one publish channel"

    if form.recurring_pattern == RecurrencePattern.CUSTOM:
        if not form.custom_pattern.strip():
            errors["custom_pattern"] = "Custom pattern is required"
        elif parse_custom_interval(form.custom_pattern) is None:
            errors["custom_pattern"] = (
                "Custom pattern must give a number of days or weeks, "
                "e.g. 'every 3 days'"
            )

    return errors


class SchedulingService:
    """Scheduling workflow for articles.

    Every remote operation records failures in ``error`` and returns a
    failure value instead of raising.
    """

    def __init__(
        self,
        client: AdminAPIClient,
        preview_occurrences: Optional[int] = None,
    ):
        """Initialize scheduling service.

        Args:
            client: Admin API client
            preview_occurrences: Dates previewed after the first one
        """
        self.client = client
        self.preview_occurrences = (
            settings.schedule_preview_occurrences
            if preview_occurrences is None
            else preview_occurrences
        )
        self.loading = False
        self.error: Optional[str] = None
        # Last fetched schedules per article
        self.schedules: dict[str, list[ArticleSchedule]] = {}

    def preview_dates(self, form: ScheduleForm) -> list[datetime]:
        """Upcoming publication dates implied by the form."""
        return project_publication_dates(
            form.scheduled_at,
            form.recurring_pattern,
            form.custom_pattern,
            occurrences=self.preview_occurrences,
        )

    async def _call(
        self,
        func: Callable[..., Awaitable[dict[str, Any]]],
        operation_name: str,
        **kwargs: Any,
    ) -> Optional[dict[str, Any]]:
        """Run one admin API call, recording failures in ``error``.

        Returns:
            Response body, or None if the call failed
        """
        self.loading = True
        self.error = None
        try:
            return await func(**kwargs)
        except AdminAPIError as e:
            logger.error(
                "Article scheduling error",
                operation=operation_name,
                status_code=e.status_code,
                error=e.message,
                **kwargs,
            )
            self.error = e.message
            return None
        finally:
            self.loading = False

    @staticmethod
    def _parse_rows(
        model: type[ModelT],
        rows: Any,
        operation_name: str,
    ) -> list[ModelT]:
        parsed: list[ModelT] = []
        for row in rows or []:
            try:
                parsed.append(model.model_validate(row))
            except ValidationError as e:
                logger.warning(
                    "Skipping malformed row",
                    operation=operation_name,
                    row_id=row.get("id") if isinstance(row, dict) else None,
                    error=str(e),
                )
        return parsed

    async def schedule_article(
        self,
        article_id: str,
        form: ScheduleForm,
        now: Optional[datetime] = None,
    ) -> bool:
        """Validate the form and submit the schedule.

        Raises:
            ScheduleValidationError: If the form is invalid; nothing is sent
        """
        errors = validate_schedule_form(form, now=now)
        if errors:
            logger.warning(
                "Schedule form rejected",
                article_id=article_id,
                fields=sorted(errors),
            )
            raise ScheduleValidationError(errors)

        body = await self._call(
            self.client.schedule_article,
            "schedule_article",
            article_id=article_id,
            request=form.to_request(),
        )
        if body is None:
            return False

        self.schedules.pop(article_id, None)
        logger.info(
            "Article scheduled",
            article_id=article_id,
            scheduled_at=form.scheduled_at.isoformat(),
            recurring_pattern=form.recurring_pattern.value,
        )
        return True

    async def cancel_schedule(self, article_id: str) -> bool:
        """Cancel the active schedule of an article.

        When the article's schedules have been fetched and none of them can
        still be cancelled, no request is sent.
        """
        known = self.schedules.get(article_id)
        if known is not None and not any(
            can_transition(s.status, ScheduleStatus.CANCELLED) for s in known
        ):
            logger.warning(
                "No cancellable schedule",
                article_id=article_id,
                statuses=[s.status.value for s in known],
            )
            self.error = "No active schedule found"
            return False

        body = await self._call(
            self.client.cancel_schedule,
            "cancel_schedule",
            article_id=article_id,
        )
        if body is None:
            return False

        for schedule in known or []:
            if can_transition(schedule.status, ScheduleStatus.CANCELLED):
                schedule.status = ScheduleStatus.CANCELLED
        logger.info("Schedule cancelled", article_id=article_id)
        return True

    async def get_article_schedules(self, article_id: str) -> list[ArticleSchedule]:
        """Fetch every schedule recorded for an article."""
        body = await self._call(
            self.client.get_article_schedules,
            "get_article_schedules",
            article_id=article_id,
        )
        if body is None:
            return []
        schedules = self._parse_rows(
            ArticleSchedule, body.get("schedules"), "get_article_schedules"
        )
        self.schedules[article_id] = schedules
        return schedules

    async def get_scheduled_articles(self) -> list[ScheduledArticle]:
        """Fetch articles that are waiting for publication."""
        body = await self._call(
            self.client.list_scheduled_articles,
            "get_scheduled_articles",
        )
        if body is None:
            return []
        return self._parse_rows(
            ScheduledArticle, body.get("articles"), "get_scheduled_articles"
        )

    async def process_scheduled_publications(self) -> bool:
        """Ask the backend to publish every schedule that is due."""
        body = await self._call(
            self.client.process_due_publications,
            "process_scheduled_publications",
        )
        if body is None:
            return False
        logger.info("Scheduled publications processed")
        return True

    async def get_upcoming_publications(self) -> list[dict[str, Any]]:
        body = await self._call(
            self.client.list_publications,
            "get_upcoming_publications",
            kind="upcoming",
        )
        return list(body.get("publications") or []) if body else []

    async def get_overdue_publications(self) -> list[dict[str, Any]]:
        body = await self._call(
            self.client.list_publications,
            "get_overdue_publications",
            kind="overdue",
        )
        return list(body.get("publications") or []) if body else []

    def dismiss_error(self) -> None:
        self.error = None
