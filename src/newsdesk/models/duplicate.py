"""Models for duplicate news detection and resolution."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RiskLevel(str, Enum):
    """Risk of wrongly deleting items in a duplicate group."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendedAction(str, Enum):
    """Detector's suggestion for handling a duplicate group."""

    KEEP_PRIMARY_DELETE_OTHERS = "keep_primary_delete_others"
    MANUAL_REVIEW_REQUIRED = "manual_review_required"
    AUTO_DELETE_DUPLICATES = "auto_delete_duplicates"


class NewsItem(BaseModel):
    """A news record as returned by the duplicate detector."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(
        ...,
        description="News item ID",
    )
    title: str = Field(
        default="",
        description="Headline",
    )
    content: str = Field(
        default="",
        description="Body text",
    )
    summary: Optional[str] = Field(
        default=None,
        description="Short summary, if generated",
    )
    source_name: Optional[str] = Field(
        default=None,
        description="Name of the feed the item came from",
    )
    source_url: Optional[str] = Field(
        default=None,
        description="Original article URL",
    )
    published_at: Optional[datetime] = Field(
        default=None,
        description="Publication time at the source",
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Ingestion time",
    )
    processed: bool = Field(
        default=False,
        description="Whether AI processing has run on this item",
    )


class DetectionDetail(BaseModel):
    """Why a single item was flagged as a duplicate of the group's primary."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(
        ...,
        description="ID of the duplicate item",
    )
    similarity: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Content similarity to the primary (0-1)",
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Detector confidence that this is a duplicate (0-1)",
    )
    reasons: list[str] = Field(
        default_factory=list,
        description="Reason tags such as 'similar_title'",
    )
    title: str = Field(
        default="",
        description="Truncated headline of the duplicate",
    )


class GroupStatistics(BaseModel):
    """Aggregate scores across a duplicate group."""

    total_items: int = Field(default=0, ge=0)
    avg_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    avg_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    min_similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    max_similarity: float = Field(default=0.0, ge=0.0, le=1.0)


class DuplicateGroup(BaseModel):
    """A cluster of near-duplicate news items with one primary to keep."""

    model_config = ConfigDict(extra="ignore")

    group_id: str = Field(
        ...,
        description="Identifier unique within one detection run",
    )
    primary_item: NewsItem = Field(
        ...,
        description="Item to keep",
    )
    duplicate_items: list[NewsItem] = Field(
        default_factory=list,
        description="Items proposed for deletion",
    )
    detection_details: list[DetectionDetail] = Field(
        default_factory=list,
        description="Per-duplicate detection scores",
    )
    group_statistics: Optional[GroupStatistics] = Field(
        default=None,
        description="Aggregate scores",
    )
    recommended_action: RecommendedAction = Field(
        default=RecommendedAction.KEEP_PRIMARY_DELETE_OTHERS,
        description="Detector's suggested handling",
    )
    risk_level: RiskLevel = Field(
        default=RiskLevel.MEDIUM,
        description="Informational risk rating; does not gate resolution",
    )

    @property
    def duplicate_ids(self) -> list[str]:
        """IDs of the items proposed for deletion, in order."""
        return [item.id for item in self.duplicate_items]

    def paired_details(self) -> list[tuple[NewsItem, Optional[DetectionDetail]]]:
        """Pair each duplicate item with its detection detail by ID."""
        details = {detail.id: detail for detail in self.detection_details}
        return [(item, details.get(item.id)) for item in self.duplicate_items]


class DuplicateStats(BaseModel):
    """Run-level statistics reported by the detector."""

    model_config = ConfigDict(extra="ignore")

    total_checked: int = 0
    duplicates_found: int = 0
    total_duplicate_items: int = 0
    by_source: dict[str, int] = Field(default_factory=dict)
    similarity_threshold: Optional[float] = None
    date_range_days: Optional[int] = None


class DuplicateListResponse(BaseModel):
    """Body of GET /api/admin/news/duplicates."""

    model_config = ConfigDict(extra="ignore")

    duplicates: list[DuplicateGroup] = Field(default_factory=list)
    stats: Optional[DuplicateStats] = None
    has_more: bool = False


RiskFilter = Literal["all", "low", "medium", "high"]


class DuplicateFilters(BaseModel):
    """Request knobs for the duplicate detector.

    All ranges are checked on construction and on assignment, so an invalid
    value never reaches a request.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    similarity_threshold: float = Field(
        default=0.8,
        ge=0.5,
        le=1.0,
        description="Minimum similarity for two items to be grouped",
    )
    include_processed: bool = Field(
        default=True,
        description="Include items that already went through AI processing",
    )
    date_range_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Look-back window in days",
    )
    risk_level: RiskFilter = Field(
        default="all",
        description="Keep only groups with this risk level",
    )
    limit: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of groups to request",
    )

    def to_query_params(self) -> dict[str, str]:
        """Query string for the detector.

        The risk filter is applied to the response, not sent.
        """
        return {
            "similarity_threshold": str(self.similarity_threshold),
            "include_processed": "true" if self.include_processed else "false",
            "date_range_days": str(self.date_range_days),
            "limit": str(self.limit),
        }

    def matches(self, group: DuplicateGroup) -> bool:
        """Whether a group passes the local risk filter."""
        return self.risk_level == "all" or group.risk_level.value == self.risk_level


class ResolveDuplicatesRequest(BaseModel):
    """Body of POST /api/admin/news/duplicates."""

    action: Literal["resolve_duplicates"] = "resolve_duplicates"
    group_id: str
    keep_id: str
    delete_ids: list[str]

    @model_validator(mode="after")
    def keep_id_not_deleted(self) -> "ResolveDuplicatesRequest":
        """The kept item can never also be deleted."""
        if self.keep_id in self.delete_ids:
            raise ValueError("keep_id must not appear in delete_ids")
        return self


class ResolveDuplicatesResult(BaseModel):
    """Response of a successful resolve call."""

    model_config = ConfigDict(extra="ignore")

    message: str = ""
    group_id: Optional[str] = None
    kept_item: Optional[dict[str, Any]] = None
    deleted_count: int = 0
    deleted_ids: list[str] = Field(default_factory=list)
