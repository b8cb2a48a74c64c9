"""Admin API client wrapper with uniform error handling."""

from typing import Any, Optional

import httpx
import structlog

from newsdesk.config import settings
from newsdesk.models.duplicate import DuplicateFilters, ResolveDuplicatesRequest
from newsdesk.models.processing import BatchProcessingRequest, JobAction
from newsdesk.models.schedule import ArticleScheduleRequest

logger = structlog.get_logger(__name__)

DUPLICATES_PATH = "/api/admin/news/duplicates"
ARTICLES_PATH = "/api/admin/articles"
AUTOMATIC_SCHEDULE_PATH = "/api/admin/articles/schedule/automatic"
PROCESSING_STATUS_PATH = "/api/admin/ai/processing-status"
PROCESS_BATCH_PATH = "/api/admin/ai/process-batch"


class AdminAPIError(Exception):
    """Raised for any failed admin API call.

    Covers non-2xx responses as well as transport failures (connection
    errors, timeouts), for which ``status_code`` is None.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.status_code = status_code
        self.details = details


class AdminAPIClient:
    """Async client for the newsroom /api/admin endpoints.

    Every method either returns the decoded JSON body or raises
    AdminAPIError. Calls are never retried.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize admin API client.

        Args:
            base_url: Origin serving the admin endpoints
            token: Optional bearer token
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header value
            client: Preconfigured httpx client (tests pass one bound to an ASGI app)
        """
        self.headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        if user_agent:
            self.headers["User-Agent"] = user_agent

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "AdminAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this wrapper created it."""
        if self._owns_client:
            await self.client.aclose()

    @staticmethod
    def _error_message(response: httpx.Response, details: Any) -> str:
        if isinstance(details, dict) and isinstance(details.get("error"), str):
            return details["error"]
        return f"HTTP {response.status_code}: {response.reason_phrase}"

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> dict[str, Any]:
        """Execute one admin API call.

        Args:
            method: HTTP method
            path: Path below the base URL
            operation: Name of operation for logging and errors
            params: Query parameters
            json: JSON body

        Returns:
            Decoded JSON object, or an empty dict for an empty body

        Raises:
            AdminAPIError: On transport failure, non-2xx status or a body
                that is not a JSON object
        """
        logger.debug(
            "Calling admin API",
            operation=operation,
            method=method,
            path=path,
        )

        try:
            response = await self.client.request(
                method,
                path,
                params=params,
                json=json,
                headers=self.headers,
            )
        except httpx.HTTPError as e:
            logger.error(
                "Admin API request failed",
                operation=operation,
                path=path,
                error=str(e),
            )
            raise AdminAPIError(
                str(e) or type(e).__name__,
                operation=operation,
            ) from e

        if not response.is_success:
            try:
                details = response.json()
            except ValueError:
                details = None
            message = self._error_message(response, details)
            logger.error(
                "Admin API returned an error",
                operation=operation,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            raise AdminAPIError(
                message,
                operation=operation,
                status_code=response.status_code,
                details=details,
            )

        if not response.content:
            return {}

        try:
            body = response.json()
        except ValueError as e:
            raise AdminAPIError(
                "Invalid JSON in admin API response",
                operation=operation,
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise AdminAPIError(
                "Unexpected admin API response shape",
                operation=operation,
                status_code=response.status_code,
                details=body,
            )

        logger.debug(
            "Admin API call succeeded",
            operation=operation,
            status_code=response.status_code,
        )
        return body

    # Duplicate detection

    async def list_duplicates(self, filters: DuplicateFilters) -> dict[str, Any]:
        """Fetch duplicate groups matching the detector filters."""
        return await self._request(
            "GET",
            DUPLICATES_PATH,
            "list_duplicates",
            params=filters.to_query_params(),
        )

    async def resolve_duplicates(
        self,
        request: ResolveDuplicatesRequest,
    ) -> dict[str, Any]:
        """Keep one item of a group and delete the rest."""
        return await self._request(
            "POST",
            DUPLICATES_PATH,
            "resolve_duplicates",
            json=request.model_dump(mode="json"),
        )

    # Scheduling

    async def schedule_article(
        self,
        article_id: str,
        request: ArticleScheduleRequest,
    ) -> dict[str, Any]:
        """Create or replace the publication schedule of an article."""
        return await self._request(
            "POST",
            f"{ARTICLES_PATH}/{article_id}/schedule",
            "schedule_article",
            json=request.model_dump(mode="json", exclude_none=True),
        )

    async def get_article_schedules(self, article_id: str) -> dict[str, Any]:
        """Fetch the schedules of an article."""
        return await self._request(
            "GET",
            f"{ARTICLES_PATH}/{article_id}/schedule",
            "get_article_schedules",
        )

    async def cancel_schedule(self, article_id: str) -> dict[str, Any]:
        """Cancel the active schedule of an article."""
        return await self._request(
            "DELETE",
            f"{ARTICLES_PATH}/{article_id}/schedule",
            "cancel_schedule",
        )

    async def list_scheduled_articles(self) -> dict[str, Any]:
        """Fetch articles that have a pending schedule."""
        return await self._request(
            "GET",
            ARTICLES_PATH,
            "list_scheduled_articles",
            params={"status": "scheduled", "include_schedule": "true"},
        )

    async def process_due_publications(self) -> dict[str, Any]:
        """Ask the backend to publish everything that is due."""
        return await self._request(
            "POST",
            AUTOMATIC_SCHEDULE_PATH,
            "process_due_publications",
            json={"action": "process_due"},
        )

    async def list_publications(self, kind: str) -> dict[str, Any]:
        """Fetch upcoming or overdue publications.

        Args:
            kind: "upcoming" or "overdue"
        """
        if kind not in ("upcoming", "overdue"):
            raise ValueError(f"Unknown publication listing: {kind}")
        return await self._request(
            "GET",
            AUTOMATIC_SCHEDULE_PATH,
            f"list_{kind}_publications",
            params={"type": kind},
        )

    # AI processing

    async def list_processing_jobs(self, limit: int = 10) -> dict[str, Any]:
        """Fetch the most recent AI processing jobs."""
        return await self._request(
            "GET",
            PROCESSING_STATUS_PATH,
            "list_processing_jobs",
            params={"limit": str(limit)},
        )

    async def start_batch_processing(
        self,
        request: BatchProcessingRequest,
    ) -> dict[str, Any]:
        """Queue a new AI batch processing job."""
        return await self._request(
            "POST",
            PROCESS_BATCH_PATH,
            "start_batch_processing",
            json=request.model_dump(mode="json", exclude_none=True),
        )

    async def update_job(self, job_id: str, action: JobAction) -> dict[str, Any]:
        """Cancel or retry a processing job."""
        return await self._request(
            "POST",
            PROCESSING_STATUS_PATH,
            f"{action.value}_job",
            json={"job_id": job_id, "action": action.value},
        )


_admin_api_client: Optional[AdminAPIClient] = None


def get_admin_api_client() -> AdminAPIClient:
    """Get the global admin API client instance.

    Returns:
        AdminAPIClient configured from settings
    """
    global _admin_api_client
    if _admin_api_client is None:
        _admin_api_client = AdminAPIClient(
            base_url=settings.admin_api_base_url,
            token=settings.admin_api_token,
            timeout=settings.admin_api_timeout_seconds,
            user_agent=settings.user_agent,
        )
    return _admin_api_client
