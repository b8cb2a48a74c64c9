"""Integration tests for article scheduling against the fake admin backend."""

from datetime import datetime, timedelta, timezone

import pytest

from newsdesk.models.schedule import PublishChannel, RecurrencePattern, ScheduleForm, ScheduleStatus
from newsdesk.services.admin_api import AdminAPIClient
from newsdesk.services.scheduling import ScheduleValidationError, SchedulingService
from tests.fake_admin import FakeAdminBackend
from tests.factories import create_scheduled_article


def tomorrow() -> datetime:
    return (datetime.now(timezone.utc) + timedelta(days=1)).replace(microsecond=0)


@pytest.mark.integration
class TestSchedulingWorkflow:
    """Test schedule submit, read and cancel over HTTP."""

    @pytest.mark.asyncio
    async def test_schedule_then_read_back(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        fake_backend.articles.add("article-1")
        service = SchedulingService(admin_client)
        form = ScheduleForm(
            scheduled_at=tomorrow(),
            recurring_pattern=RecurrencePattern.CUSTOM,
            custom_pattern="every 3 days",
            publish_channels=[PublishChannel.WEB, PublishChannel.NEWSLETTER],
            notes="Lead story",
        )

        assert await service.schedule_article("article-1", form) is True

        body = fake_backend.requests_to("POST", "/api/admin/articles/article-1/schedule")[0]["json"]
        assert body["recurring_pattern"] == "every 3 days"
        assert body["publish_channels"] == ["web", "newsletter"]
        assert body["notes"] == "Lead story"
        assert body["auto_publish"] is True

        schedules = await service.get_article_schedules("article-1")
        assert len(schedules) == 1
        assert schedules[0].status == ScheduleStatus.SCHEDULED
        assert schedules[0].recurring_pattern == "every 3 days"
        assert schedules[0].scheduled_at == form.scheduled_at

    @pytest.mark.asyncio
    async def test_reschedule_cancels_previous(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        fake_backend.articles.add("article-1")
        service = SchedulingService(admin_client)

        await service.schedule_article("article-1", ScheduleForm(scheduled_at=tomorrow()))
        await service.schedule_article(
            "article-1",
            ScheduleForm(scheduled_at=tomorrow() + timedelta(hours=2), recurring_pattern="daily"),
        )

        statuses = [s.status for s in await service.get_article_schedules("article-1")]
        assert statuses == [ScheduleStatus.CANCELLED, ScheduleStatus.SCHEDULED]

    @pytest.mark.asyncio
    async def test_unknown_article(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        service = SchedulingService(admin_client)

        form = ScheduleForm(scheduled_at=tomorrow())

        assert await service.schedule_article("missing", form) is False
        assert service.error == "Article not found"

    @pytest.mark.asyncio
    async def test_invalid_form_sends_nothing(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        fake_backend.articles.add("article-1")
        service = SchedulingService(admin_client)
        form = ScheduleForm(scheduled_at=datetime.now(timezone.utc) - timedelta(days=1))

        with pytest.raises(ScheduleValidationError):
            await service.schedule_article("article-1", form)

        assert fake_backend.requests == []

    @pytest.mark.asyncio
    async def test_cancel_schedule(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        fake_backend.articles.add("article-1")
        service = SchedulingService(admin_client)
        await service.schedule_article("article-1", ScheduleForm(scheduled_at=tomorrow()))

        assert await service.cancel_schedule("article-1") is True
        assert await service.cancel_schedule("article-1") is False
        assert service.error == "No active schedule found"

    @pytest.mark.asyncio
    async def test_scheduled_articles_and_publications(
        self,
        admin_client: AdminAPIClient,
        fake_backend: FakeAdminBackend,
    ) -> None:
        fake_backend.scheduled_articles.append(create_scheduled_article(id="a-1"))
        fake_backend.publications["overdue"].append({"article_id": "a-2"})
        service = SchedulingService(admin_client)

        articles = await service.get_scheduled_articles()
        overdue = await service.get_overdue_publications()
        processed = await service.process_scheduled_publications()

        assert [a.id for a in articles] == ["a-1"]
        assert overdue == [{"article_id": "a-2"}]
        assert processed is True
        assert await service.get_overdue_publications() == []
        assert await service.get_upcoming_publications() == []
