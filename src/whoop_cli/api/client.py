"""WHOOP API client."""

import asyncio
from types import TracebackType
from typing import Any, Protocol

import httpx
import structlog

from whoop_cli.api.endpoints import DEFAULT_PAGE_LIMIT, ENDPOINTS
from whoop_cli.auth.tokens import OAuthTokens
from whoop_cli.core.config import settings
from whoop_cli.core.errors import ExitCode, RateLimitError, WhoopError
from whoop_cli.models.whoop import (
    CombinedOutput,
    DataType,
    WhoopBody,
    WhoopCycle,
    WhoopProfile,
    WhoopRecovery,
    WhoopSleep,
    WhoopWorkout,
)
from whoop_cli.utils.dates import get_date_range, now_iso

logger = structlog.get_logger()


class TokenProvider(Protocol):
    async def get_valid_tokens(self) -> OAuthTokens: ...


class WhoopClient:
    """Authenticated async client for the WHOOP developer API.

    Usage:
        async with WhoopClient(token_manager) as client:
            sleeps = await client.get_sleep({"start": start, "end": end})
    """

    def __init__(
        self,
        tokens: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize client.

        Args:
            tokens: Source of valid access tokens (refreshes as needed)
            base_url: API base URL (default from config)
            timeout: Request timeout in seconds (default from config)
        """
        self.tokens = tokens
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._http: httpx.AsyncClient | None = None
        self.logger = logger.bind(component="whoop_client")

    async def __aenter__(self) -> "WhoopClient":
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        """Make an authenticated GET request and return the decoded JSON.

        Raises:
            WhoopError: On auth failure (exit code 2) or other API errors
            RateLimitError: On HTTP 429
        """
        if self._http is None:
            raise RuntimeError("WhoopClient must be used as an async context manager")

        tokens = await self.tokens.get_valid_tokens()
        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await self._http.get(
                endpoint,
                params=query,
                headers={
                    "Authorization": f"Bearer {tokens.access_token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            self.logger.warning("Request timed out", endpoint=endpoint)
            raise WhoopError(f"Request to {endpoint} timed out") from e
        except httpx.HTTPError as e:
            self.logger.warning("Request failed", endpoint=endpoint, error=str(e))
            raise WhoopError(f"Cannot connect to WHOOP API: {e}") from e

        self._raise_for_status(endpoint, response)
        return response.json()

    def _raise_for_status(self, endpoint: str, response: httpx.Response) -> None:
        if response.is_success:
            return

        status = response.status_code
        self.logger.warning("API error", endpoint=endpoint, status=status)

        if status == 401:
            raise WhoopError(
                "Authentication failed. Run: whoop auth login",
                ExitCode.AUTH_ERROR,
                401,
            )

        if status == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitError(
                "Rate limit exceeded",
                int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        raise WhoopError(
            f"API request failed: {response.reason_phrase}",
            ExitCode.GENERAL_ERROR,
            status,
        )

    async def fetch_all(
        self,
        endpoint: str,
        params: dict[str, Any],
        all_pages: bool = False,
    ) -> list[dict[str, Any]]:
        """Collect records from a paginated endpoint.

        Only the first page is fetched unless all_pages is set.
        """
        records: list[dict[str, Any]] = []
        next_token: str | None = None

        while True:
            page = await self.request(endpoint, {**params, "nextToken": next_token})
            records.extend(page.get("records", []))
            next_token = page.get("next_token") if all_pages else None
            if not next_token:
                return records

    def _collection_params(self, params: dict[str, Any] | None) -> dict[str, Any]:
        return {"limit": DEFAULT_PAGE_LIMIT, **{k: v for k, v in (params or {}).items() if v}}

    async def get_profile(self) -> WhoopProfile:
        return WhoopProfile.model_validate(await self.request(ENDPOINTS[DataType.PROFILE]))

    async def get_body(self) -> WhoopBody:
        return WhoopBody.model_validate(await self.request(ENDPOINTS[DataType.BODY]))

    async def get_sleep(
        self, params: dict[str, Any] | None = None, all_pages: bool = False
    ) -> list[WhoopSleep]:
        records = await self.fetch_all(
            ENDPOINTS[DataType.SLEEP], self._collection_params(params), all_pages
        )
        return [WhoopSleep.model_validate(r) for r in records]

    async def get_recovery(
        self, params: dict[str, Any] | None = None, all_pages: bool = False
    ) -> list[WhoopRecovery]:
        records = await self.fetch_all(
            ENDPOINTS[DataType.RECOVERY], self._collection_params(params), all_pages
        )
        return [WhoopRecovery.model_validate(r) for r in records]

    async def get_workout(
        self, params: dict[str, Any] | None = None, all_pages: bool = False
    ) -> list[WhoopWorkout]:
        records = await self.fetch_all(
            ENDPOINTS[DataType.WORKOUT], self._collection_params(params), all_pages
        )
        return [WhoopWorkout.model_validate(r) for r in records]

    async def get_cycle(
        self, params: dict[str, Any] | None = None, all_pages: bool = False
    ) -> list[WhoopCycle]:
        records = await self.fetch_all(
            ENDPOINTS[DataType.CYCLE], self._collection_params(params), all_pages
        )
        return [WhoopCycle.model_validate(r) for r in records]

    async def fetch_data(
        self,
        types: list[DataType],
        day: str,
        limit: int | None = None,
        all_pages: bool = False,
    ) -> CombinedOutput:
        """Fetch several data types for one WHOOP day concurrently.

        Args:
            types: Data types to include
            day: WHOOP day (YYYY-MM-DD)
            limit: Page size for collection endpoints
            all_pages: Follow pagination to the end

        Returns:
            CombinedOutput with only the requested types populated
        """
        start, end = get_date_range(day)
        params = {"start": start, "end": end, "limit": limit}

        output = CombinedOutput(date=day, fetched_at=now_iso())

        fetchers = {
            DataType.PROFILE: self.get_profile,
            DataType.BODY: self.get_body,
            DataType.SLEEP: lambda: self.get_sleep(params, all_pages),
            DataType.RECOVERY: lambda: self.get_recovery(params, all_pages),
            DataType.WORKOUT: lambda: self.get_workout(params, all_pages),
            DataType.CYCLE: lambda: self.get_cycle(params, all_pages),
        }

        unique = list(dict.fromkeys(types))
        results = await asyncio.gather(*(fetchers[t]() for t in unique))
        for data_type, value in zip(unique, results, strict=True):
            setattr(output, data_type.value, value)

        self.logger.debug("Fetched data", day=day, types=[t.value for t in unique])
        return output
