"""Async HTTP client for the Frappe ERP REST API.

Provides ERPClient, which pulls a complete snapshot of one doctype per call
(the whole dataset is requested as a single page). Transport failures are
retried with tenacity (exponential backoff 1-10s); every failure mode that
survives the retries is surfaced as a single ERPFetchError so callers never
proceed with a partial snapshot.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.app.erp.schemas import ERP_RECORD_TYPES, EntityKind, ERPRecord

logger = structlog.get_logger(__name__)


class ERPFetchError(Exception):
    """The ERP could not be reached or returned an unusable payload."""

    def __init__(self, kind: EntityKind, reason: str) -> None:
        super().__init__(f"failed to fetch {kind.value} from ERP: {reason}")
        self.kind = kind
        self.reason = reason


class ERPClient:
    """Read-only client for Frappe ``/api/resource`` list endpoints.

    Args:
        base_url: ERP root URL, e.g. ``https://erp.example.com``.
        api_key: Frappe API key. The auth header is sent only when both
            key and secret are configured.
        api_secret: Frappe API secret.
        timeout: Request timeout in seconds.
        page_length: ``limit_page_length`` sent with every request.
        max_attempts: Attempts per fetch for transport-level failures.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        api_secret: str = "",
        timeout: float = 30.0,
        page_length: int = 99999,
        max_attempts: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._page_length = page_length
        self._max_attempts = max(1, max_attempts)
        self._transport = transport
        self._headers = {"Accept": "application/json"}
        if api_key and api_secret:
            self._headers["Authorization"] = f"Token {api_key}:{api_secret}"

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client with the configured headers and timeout."""
        return httpx.AsyncClient(
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def resource_url(self, kind: EntityKind) -> str:
        return f"{self._base_url}/api/resource/{kind.resource}"

    async def fetch_all(self, kind: EntityKind) -> list[ERPRecord]:
        """Fetch every record of ``kind`` in one request.

        Args:
            kind: ERP entity kind to fetch.

        Returns:
            Parsed records; items that are not objects or fail validation
            are skipped with a warning.

        Raises:
            ERPFetchError: Network failure, non-200 status, or a body that
                is not a JSON ``{"data": [...]}`` envelope.
        """
        try:
            items = await self._get_data(kind)
        except ERPFetchError as exc:
            logger.error("erp.fetch_failed", kind=kind.value, error=exc.reason)
            raise
        except httpx.HTTPError as exc:
            logger.error("erp.fetch_failed", kind=kind.value, error=str(exc))
            raise ERPFetchError(kind, str(exc) or type(exc).__name__) from exc

        record_type = ERP_RECORD_TYPES[kind]
        records: list[ERPRecord] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                logger.warning("erp.record_skipped", kind=kind.value, index=index, reason="not an object")
                continue
            try:
                records.append(record_type.from_payload(item))
            except ValidationError as exc:
                logger.warning(
                    "erp.record_skipped",
                    kind=kind.value,
                    index=index,
                    name=item.get("name"),
                    reason=str(exc),
                )

        logger.info("erp.fetched", kind=kind.value, count=len(records), received=len(items))
        return records

    async def _get_data(self, kind: EntityKind) -> list[Any]:
        """GET the resource list and return the raw ``data`` array."""
        params = {"fields": '["*"]', "limit_page_length": str(self._page_length)}

        response: httpx.Response | None = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                async with self._client() as client:
                    response = await client.get(self.resource_url(kind), params=params)

        if response.status_code != httpx.codes.OK:
            raise ERPFetchError(kind, f"ERP API returned status {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise ERPFetchError(kind, f"failed to decode ERP response: {exc}") from exc

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise ERPFetchError(kind, "ERP response has no data array")
        return body["data"]
