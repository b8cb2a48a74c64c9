"""Models for article publication scheduling.

Covers the operator-facing schedule form, the recurrence spec used to preview
future publication dates, and the schedule payloads exchanged with the admin
API.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RecurrencePattern(str, Enum):
    """Named cadences for recurring publication."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class IntervalUnit(str, Enum):
    """Step unit for custom recurrence."""

    DAYS = "days"
    WEEKS = "weeks"


class PublishChannel(str, Enum):
    """Channels a scheduled article is published to."""

    WEB = "web"
    NEWSLETTER = "newsletter"
    SOCIAL = "social"
    RSS = "rss"


class ArticleStatus(str, Enum):
    """Editorial status of an article."""

    DRAFT = "draft"
    REVIEW = "review"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ScheduleStatus(str, Enum):
    """Lifecycle of a publication schedule."""

    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    FAILED = "failed"


SCHEDULE_TRANSITIONS: dict[ScheduleStatus, frozenset[ScheduleStatus]] = {
    ScheduleStatus.SCHEDULED: frozenset(
        {ScheduleStatus.PUBLISHED, ScheduleStatus.CANCELLED, ScheduleStatus.FAILED}
    ),
    ScheduleStatus.FAILED: frozenset({ScheduleStatus.SCHEDULED}),
    ScheduleStatus.PUBLISHED: frozenset(),
    ScheduleStatus.CANCELLED: frozenset(),
}


def can_transition(current: ScheduleStatus, target: ScheduleStatus) -> bool:
    """Check whether a schedule may move from one status to another."""
    return target in SCHEDULE_TRANSITIONS[current]


class ScheduleSpec(BaseModel):
    """Recurrence definition anchored at the first publication instant."""

    anchor: datetime = Field(
        ...,
        description="First publication instant",
    )
    pattern: RecurrencePattern = Field(
        default=RecurrencePattern.NONE,
        description="Recurrence cadence",
    )
    custom_interval_value: Optional[int] = Field(
        default=None,
        ge=1,
        description="Step count for custom recurrence",
    )
    custom_interval_unit: Optional[IntervalUnit] = Field(
        default=None,
        description="Step unit for custom recurrence",
    )

    @model_validator(mode="after")
    def check_custom_interval(self) -> "ScheduleSpec":
        """Custom interval fields only make sense for the custom pattern."""
        has_custom = (
            self.custom_interval_value is not None
            or self.custom_interval_unit is not None
        )
        if has_custom and self.pattern != RecurrencePattern.CUSTOM:
            raise ValueError(
                "custom_interval_value/custom_interval_unit require pattern 'custom'"
            )
        if (self.custom_interval_value is None) != (self.custom_interval_unit is None):
            raise ValueError(
                "custom_interval_value and custom_interval_unit must be set together"
            )
        return self

    @classmethod
    def from_descriptor(
        cls,
        anchor: datetime,
        pattern: RecurrencePattern,
        descriptor: Optional[str] = None,
    ) -> "ScheduleSpec":
        """Build a spec, parsing a free-text descriptor for custom patterns.

        An unparseable descriptor leaves the custom fields empty, which the
        projector treats as a single occurrence.
        """
        from newsdesk.services.recurrence import parse_custom_interval

        if pattern != RecurrencePattern.CUSTOM:
            return cls(anchor=anchor, pattern=pattern)

        interval = parse_custom_interval(descriptor or "")
        if interval is None:
            return cls(anchor=anchor, pattern=pattern)
        value, unit = interval
        return cls(
            anchor=anchor,
            pattern=pattern,
            custom_interval_value=value,
            custom_interval_unit=unit,
        )

    def preview(self, occurrences: int = 5) -> list[datetime]:
        """Project the publication instants for this spec."""
        from newsdesk.services.recurrence import project_schedule

        return project_schedule(self, occurrences=occurrences)


class ScheduleForm(BaseModel):
    """Operator input for scheduling an article."""

    scheduled_at: datetime = Field(
        ...,
        description="First publication instant",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone the schedule is expressed in",
    )
    recurring_pattern: RecurrencePattern = Field(
        default=RecurrencePattern.NONE,
        description="Recurrence cadence",
    )
    custom_pattern: str = Field(
        default="",
        description="Free-text interval such as 'every 3 days'",
    )
    auto_publish: bool = Field(
        default=True,
        description="Publish automatically when the time arrives",
    )
    publish_channels: list[PublishChannel] = Field(
        default_factory=lambda: [PublishChannel.WEB],
        description="Channels to publish to",
    )
    notes: Optional[str] = Field(
        default=None,
        description="Free-form notes for editors",
    )

    @field_validator("recurring_pattern", mode="before")
    @classmethod
    def blank_pattern_means_none(cls, v: Any) -> Any:
        """Treat an empty selection as no repetition."""
        if v is None or v == "":
            return RecurrencePattern.NONE
        return v

    def to_spec(self) -> ScheduleSpec:
        """Recurrence spec for previewing this form."""
        return ScheduleSpec.from_descriptor(
            anchor=self.scheduled_at,
            pattern=self.recurring_pattern,
            descriptor=self.custom_pattern,
        )

    def to_request(self) -> "ArticleScheduleRequest":
        """Request body for the schedule endpoint.

        Custom patterns are sent as the operator's descriptor text.
        """
        if self.recurring_pattern == RecurrencePattern.NONE:
            pattern = None
        elif self.recurring_pattern == RecurrencePattern.CUSTOM:
            pattern = self.custom_pattern.strip()
        else:
            pattern = self.recurring_pattern.value

        return ArticleScheduleRequest(
            scheduled_at=self.scheduled_at,
            timezone=self.timezone,
            recurring_pattern=pattern,
            auto_publish=self.auto_publish,
            publish_channels=list(self.publish_channels),
            notes=self.notes or None,
        )


class ArticleScheduleRequest(BaseModel):
    """Body of POST /api/admin/articles/{id}/schedule."""

    model_config = ConfigDict(use_enum_values=True)

    scheduled_at: datetime
    timezone: str = "UTC"
    recurring_pattern: Optional[str] = None
    auto_publish: bool = True
    publish_channels: list[PublishChannel] = Field(
        default_factory=lambda: [PublishChannel.WEB]
    )
    notes: Optional[str] = None


class ArticleSchedule(BaseModel):
    """An existing publication schedule for an article."""

    model_config = ConfigDict(extra="ignore")

    id: str
    scheduled_at: datetime
    timezone: str = "UTC"
    recurring_pattern: Optional[str] = None
    status: ScheduleStatus
    created_at: Optional[datetime] = None


class ArticleAuthor(BaseModel):
    """Author summary embedded in article listings."""

    display_name: str = ""
    username: str = ""


class ArticleCategory(BaseModel):
    """Category summary embedded in article listings."""

    name: str
    color: Optional[str] = None


class ScheduledArticle(BaseModel):
    """Article row returned by the scheduled articles listing."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    status: ArticleStatus
    scheduled_at: datetime
    timezone: str = "UTC"
    recurring_pattern: Optional[str] = None
    auto_publish: bool = True
    publish_channels: list[str] = Field(default_factory=list)
    author: ArticleAuthor = Field(default_factory=ArticleAuthor)
    category: Optional[ArticleCategory] = None
    schedule_status: ScheduleStatus = ScheduleStatus.SCHEDULED
