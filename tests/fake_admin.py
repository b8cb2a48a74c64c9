"""In-memory fake of the newsroom admin backend.

Serves the /api/admin endpoints from plain Python collections so that the
client and services can be exercised over real HTTP through ASGITransport.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tests.factories import create_duplicate_list, create_schedule


@dataclass
class FakeAdminBackend:
    """In-memory state behind the fake /api/admin endpoints.

    Tests seed the collections directly and inspect ``requests`` to see what
    the client sent. Group IDs in ``failing_group_ids`` make the resolve
    endpoint answer 500.
    """

    duplicate_groups: list[dict[str, Any]] = field(default_factory=list)
    failing_group_ids: set[str] = field(default_factory=set)
    articles: set[str] = field(default_factory=set)
    schedules: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    scheduled_articles: list[dict[str, Any]] = field(default_factory=list)
    publications: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {"upcoming": [], "overdue": []}
    )
    jobs: list[dict[str, Any]] = field(default_factory=list)
    requests: list[dict[str, Any]] = field(default_factory=list)

    def get_job(self, job_id: str) -> dict[str, Any] | None:
        for job in self.jobs:
            if job["id"] == job_id:
                return job
        return None

    def requests_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [r for r in self.requests if r["method"] == method and r["path"] == path]

    async def record(self, request: httpx.Request) -> None:
        """httpx request hook that keeps a copy of every outgoing request."""
        self.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "params": dict(request.url.params),
                "headers": dict(request.headers),
                "json": json.loads(request.content) if request.content else None,
            }
        )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_fake_admin_app(backend: FakeAdminBackend) -> FastAPI:
    """Build a FastAPI app that serves the admin endpoints from ``backend``."""
    app = FastAPI(title="Fake Newsroom Admin API")

    # Duplicate detection

    @app.get("/api/admin/news/duplicates")
    async def list_duplicates(request: Request) -> dict[str, Any]:
        limit = int(request.query_params.get("limit", "20"))
        groups = backend.duplicate_groups[:limit]
        return create_duplicate_list(
            groups,
            has_more=len(backend.duplicate_groups) > limit,
            similarity_threshold=float(
                request.query_params.get("similarity_threshold", "0.8")
            ),
            date_range_days=int(request.query_params.get("date_range_days", "30")),
        )

    @app.post("/api/admin/news/duplicates")
    async def resolve_duplicates(request: Request) -> Any:
        payload = await request.json()
        if payload.get("action") != "resolve_duplicates":
            return _error(400, "Invalid action")
        keep_id = payload.get("keep_id")
        delete_ids = payload.get("delete_ids") or []
        if not keep_id or not delete_ids:
            return _error(400, "keep_id and delete_ids are required")
        if payload.get("group_id") in backend.failing_group_ids:
            return _error(500, "Failed to delete duplicates")

        kept = None
        remaining = []
        for group in backend.duplicate_groups:
            if group["group_id"] == payload.get("group_id"):
                kept = group["primary_item"]
            else:
                remaining.append(group)
        backend.duplicate_groups = remaining

        return {
            "message": (
                "Successfully resolved duplicates. "
                f"Kept 1 item, deleted {len(delete_ids)} items."
            ),
            "group_id": payload.get("group_id"),
            "kept_item": kept,
            "deleted_count": len(delete_ids),
            "deleted_ids": delete_ids,
        }

    # Scheduling

    @app.get("/api/admin/articles")
    async def list_articles(request: Request) -> dict[str, Any]:
        if request.query_params.get("status") != "scheduled":
            return {"articles": []}
        return {"articles": backend.scheduled_articles}

    @app.get("/api/admin/articles/schedule/automatic")
    async def list_publications(request: Request) -> Any:
        kind = request.query_params.get("type")
        if kind not in backend.publications:
            return _error(400, "Invalid type")
        return {"publications": backend.publications[kind]}

    @app.post("/api/admin/articles/schedule/automatic")
    async def process_due(request: Request) -> Any:
        payload = await request.json()
        if payload.get("action") != "process_due":
            return _error(400, "Invalid action")
        processed = backend.publications["overdue"]
        backend.publications["overdue"] = []
        return {"processed": len(processed)}

    @app.post("/api/admin/articles/{article_id}/schedule")
    async def schedule_article(article_id: str, request: Request) -> Any:
        if article_id not in backend.articles:
            return _error(404, "Article not found")
        payload = await request.json()
        scheduled_at = datetime.fromisoformat(
            payload["scheduled_at"].replace("Z", "+00:00")
        )
        if scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
        if scheduled_at <= datetime.now(timezone.utc):
            return _error(400, "Scheduled time must be in the future")

        for existing in backend.schedules.get(article_id, []):
            if existing["status"] == "scheduled":
                existing["status"] = "cancelled"

        schedule = create_schedule(
            scheduled_at=scheduled_at,
            timezone_name=payload.get("timezone", "UTC"),
            recurring_pattern=payload.get("recurring_pattern"),
        )
        backend.schedules.setdefault(article_id, []).append(schedule)
        return {"message": "Article scheduled successfully", "schedule": schedule}

    @app.get("/api/admin/articles/{article_id}/schedule")
    async def get_schedules(article_id: str) -> dict[str, Any]:
        return {"schedules": backend.schedules.get(article_id, [])}

    @app.delete("/api/admin/articles/{article_id}/schedule")
    async def cancel_schedule(article_id: str) -> Any:
        active = [
            s for s in backend.schedules.get(article_id, []) if s["status"] == "scheduled"
        ]
        if not active:
            return _error(404, "No active schedule found")
        for schedule in active:
            schedule["status"] = "cancelled"
        return {"message": "Schedule cancelled successfully"}

    # AI processing

    @app.get("/api/admin/ai/processing-status")
    async def list_jobs(request: Request) -> dict[str, Any]:
        limit = int(request.query_params.get("limit", "10"))
        return {"jobs": backend.jobs[:limit]}

    @app.post("/api/admin/ai/processing-status")
    async def update_job(request: Request) -> Any:
        payload = await request.json()
        job = backend.get_job(payload.get("job_id", ""))
        if job is None:
            return _error(404, "Job not found")

        action = payload.get("action")
        if action == "cancel" and job["status"] in ("pending", "processing"):
            job["status"] = "cancelled"
        elif action == "retry" and job["status"] == "failed":
            job["status"] = "pending"
            job["error_message"] = None
        else:
            return _error(400, f"Cannot {action} job in status {job['status']}")
        return {"message": f"Job {action} successful", "job_id": job["id"]}

    @app.post("/api/admin/ai/process-batch")
    async def process_batch(request: Request) -> Any:
        payload = await request.json()
        batch_size = payload.get("batch_size", 10)
        if not 1 <= batch_size <= 100:
            return _error(400, "Batch size must be between 1 and 100")

        job_id = f"job-{len(backend.jobs) + 1}"
        backend.jobs.insert(
            0,
            {
                "id": job_id,
                "status": "pending",
                "progress": {"total_items": batch_size},
                "timing": {"created_at": datetime.now(timezone.utc).isoformat()},
                "processing_options": payload.get("processing_options", {}),
            },
        )
        return {"job_id": job_id, "message": "Batch processing started"}

    return app
