"""Duplicate resolution service for the news duplicate review screen.

Holds the operator's view of the detector output (current groups, selection,
filters) and issues one resolve call per group. Detection itself runs on the
backend.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import structlog
from pydantic import ValidationError

from newsdesk.config import settings
from newsdesk.models.duplicate import (
    DuplicateFilters,
    DuplicateGroup,
    DuplicateListResponse,
    DuplicateStats,
    ResolveDuplicatesRequest,
    ResolveDuplicatesResult,
)
from newsdesk.services.admin_api import AdminAPIClient, AdminAPIError

logger = structlog.get_logger(__name__)


class InvalidResolutionError(ValueError):
    """Raised when a resolve request is rejected before reaching the backend."""

    pass


@dataclass
class BulkResolutionResult:
    """Outcome of resolving every selected group.

    Attributes:
        resolved: Group IDs the backend accepted
        failed: Group ID to error message for groups that were not resolved
    """

    resolved: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def all_resolved(self) -> bool:
        return not self.failed


class DuplicateResolutionService:
    """Selection state and resolve workflow for duplicate news groups.

    Resolving is not transactional across groups: each group is its own
    backend call, and whatever remains after the next fetch is simply shown
    again.
    """

    def __init__(
        self,
        client: AdminAPIClient,
        filters: Optional[DuplicateFilters] = None,
    ):
        """Initialize duplicate resolution service.

        Args:
            client: Admin API client
            filters: Initial detector filters (defaults from settings)
        """
        self.client = client
        self.filters = filters or DuplicateFilters(
            similarity_threshold=settings.duplicate_similarity_threshold,
            date_range_days=settings.duplicate_date_range_days,
            limit=settings.duplicate_fetch_limit,
        )

        self.groups: list[DuplicateGroup] = []
        self.selected_group_ids: set[str] = set()
        self.stats: Optional[DuplicateStats] = None
        self.has_more = False
        self.last_updated: Optional[datetime] = None
        self.last_resolution: Optional[ResolveDuplicatesResult] = None

        self.loading = False
        self.fetch_error: Optional[str] = None
        self.error: Optional[str] = None

        self._fetch_generation = 0
        self._closed = False

    # Selection

    def toggle(self, group_id: str) -> bool:
        """Add the group to the selection if absent, remove it if present.

        Returns:
            Whether the group is selected afterwards
        """
        if group_id in self.selected_group_ids:
            self.selected_group_ids.discard(group_id)
            return False
        self.selected_group_ids.add(group_id)
        return True

    def clear(self) -> None:
        """Empty the selection."""
        self.selected_group_ids.clear()

    def is_selected(self, group_id: str) -> bool:
        return group_id in self.selected_group_ids

    def get_group(self, group_id: str) -> Optional[DuplicateGroup]:
        for group in self.groups:
            if group.group_id == group_id:
                return group
        return None

    def selected_groups(self) -> list[DuplicateGroup]:
        """Currently listed groups that are selected, in list order."""
        return [g for g in self.groups if g.group_id in self.selected_group_ids]

    # Filters

    def set_filters(self, **updates: Any) -> DuplicateFilters:
        """Validate and store new detector filters.

        Raises:
            pydantic.ValidationError: If a value is out of range or unknown;
                the current filters are kept
        """
        self.filters = DuplicateFilters(**{**self.filters.model_dump(), **updates})
        logger.debug("Duplicate filters updated", **self.filters.model_dump())
        return self.filters

    # Remote operations

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._fetch_generation

    async def fetch_duplicates(self) -> list[DuplicateGroup]:
        """Fetch duplicate groups for the current filters.

        On failure the previous groups are kept and ``fetch_error`` is set. A
        response that is overtaken by a newer fetch, or that arrives after
        close(), is dropped.

        Returns:
            The groups now held by the service
        """
        self._fetch_generation += 1
        generation = self._fetch_generation
        filters = self.filters

        self.loading = True
        self.fetch_error = None

        try:
            body = await self.client.list_duplicates(filters)
            response = DuplicateListResponse.model_validate(body)
        except (AdminAPIError, ValidationError) as e:
            if isinstance(e, AdminAPIError):
                message = e.message
            else:
                message = "Invalid duplicate list response"
            logger.error(
                "Failed to fetch duplicates",
                error=str(e),
                stale=not self._is_current(generation),
            )
            if self._is_current(generation):
                self.fetch_error = message
                self.loading = False
            return self.groups

        if not self._is_current(generation):
            logger.debug(
                "Discarding stale duplicate list",
                generation=generation,
                closed=self._closed,
            )
            return self.groups

        self.groups = [g for g in response.duplicates if filters.matches(g)]
        listed_ids = {g.group_id for g in self.groups}
        self.selected_group_ids &= listed_ids
        self.stats = response.stats
        self.has_more = response.has_more
        self.last_updated = datetime.now(timezone.utc)
        self.loading = False

        logger.info(
            "Fetched duplicate groups",
            group_count=len(self.groups),
            received=len(response.duplicates),
            risk_level=filters.risk_level,
            has_more=self.has_more,
        )
        return self.groups

    async def resolve(
        self,
        group_id: str,
        primary_item_id: str,
        duplicate_item_ids: Iterable[str],
        refetch: bool = True,
    ) -> bool:
        """Keep the primary item of a group and delete its duplicates.

        Args:
            group_id: Group being resolved
            primary_item_id: Item to keep
            duplicate_item_ids: Items to delete
            refetch: Refresh the group list after success

        Returns:
            True if the backend accepted the request

        Raises:
            InvalidResolutionError: If the primary is among the items to
                delete; nothing is sent and local state is unchanged
        """
        delete_ids = list(duplicate_item_ids)
        if primary_item_id in delete_ids:
            logger.warning(
                "Rejected resolve that would delete the primary item",
                group_id=group_id,
                primary_item_id=primary_item_id,
            )
            raise InvalidResolutionError(
                f"Primary item {primary_item_id} cannot also be deleted"
            )

        request = ResolveDuplicatesRequest(
            group_id=group_id,
            keep_id=primary_item_id,
            delete_ids=delete_ids,
        )

        logger.info(
            "Resolving duplicate group",
            group_id=group_id,
            keep_id=primary_item_id,
            delete_count=len(delete_ids),
        )

        try:
            body = await self.client.resolve_duplicates(request)
        except AdminAPIError as e:
            logger.error(
                "Failed to resolve duplicate group",
                group_id=group_id,
                status_code=e.status_code,
                error=e.message,
            )
            if not self._closed:
                self.error = e.message
            return False

        try:
            result = ResolveDuplicatesResult.model_validate(body)
        except ValidationError as e:
            logger.warning(
                "Unexpected resolve response",
                group_id=group_id,
                error=str(e),
            )
            result = ResolveDuplicatesResult(
                group_id=group_id,
                deleted_count=len(delete_ids),
                deleted_ids=delete_ids,
            )

        logger.info(
            "Resolved duplicate group",
            group_id=group_id,
            deleted_count=result.deleted_count,
            deleted_ids=result.deleted_ids,
        )
        self.last_resolution = result

        if self._closed:
            return True

        self.selected_group_ids.discard(group_id)
        self.groups = [g for g in self.groups if g.group_id != group_id]

        if refetch:
            await self.fetch_duplicates()
        return True

    async def resolve_group(self, group_id: str, refetch: bool = True) -> bool:
        """Resolve a listed group using its own primary and duplicates.

        Raises:
            InvalidResolutionError: If the group is not currently listed
        """
        group = self.get_group(group_id)
        if group is None:
            raise InvalidResolutionError(f"Duplicate group {group_id} is not listed")
        return await self.resolve(
            group.group_id,
            group.primary_item.id,
            group.duplicate_ids,
            refetch=refetch,
        )

    async def resolve_selected(self) -> BulkResolutionResult:
        """Resolve every selected group, one independent call each.

        A failing group does not stop the others. The list is refreshed once
        at the end so that unresolved groups are shown again.
        """
        result = BulkResolutionResult()
        group_ids = sorted(self.selected_group_ids)

        if not group_ids:
            return result

        logger.info("Resolving selected duplicate groups", group_count=len(group_ids))

        for group_id in group_ids:
            try:
                resolved = await self.resolve_group(group_id, refetch=False)
            except InvalidResolutionError as e:
                result.failed[group_id] = str(e)
                continue
            if resolved:
                result.resolved.append(group_id)
            else:
                result.failed[group_id] = self.error or "Failed to resolve duplicates"

        if result.failed and not self._closed:
            self.error = (
                f"{len(result.failed)} of {len(group_ids)} duplicate groups "
                "could not be resolved"
            )

        logger.info(
            "Bulk duplicate resolution finished",
            resolved=len(result.resolved),
            failed=len(result.failed),
        )

        if not self._closed:
            await self.fetch_duplicates()
        return result

    def dismiss_error(self) -> None:
        """Clear the error banners."""
        self.error = None
        self.fetch_error = None

    def close(self) -> None:
        """Stop applying responses; in-flight calls are not cancelled."""
        self._closed = True
