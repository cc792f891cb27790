"""HSS (subscriber data) client.

httpx-based async client that fetches a public identity's Initial Filter
Criteria document. No caching: freshness is the data store's concern.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from callrouting.config import HSS_TIMEOUT, HSS_URL
from callrouting.trace import (
    HSS_ERROR,
    HSS_REQUEST,
    HSS_RESPONSE,
    TraceLogger,
    get_trace_logger,
)

log = logging.getLogger(__name__)


class HssConnection:
    """Async HTTP client for the subscriber data store.

    Exposes ``fetch_filter_document(identity) -> (found, xml)``; every
    failure mode collapses to ``(False, "")``.
    """

    def __init__(
        self,
        base_url: str = HSS_URL,
        timeout: float = HSS_TIMEOUT,
        trace: Optional[TraceLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: Subscriber data store base URL
            timeout: Request timeout in seconds
            trace: Trace sink (defaults to the global one)
            transport: Custom httpx transport (tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._trace = trace or get_trace_logger()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HssConnection":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_filter_document(self, identity: str, trail: int = 0) -> tuple[bool, str]:
        """Fetch the iFC XML for a public identity.

        Args:
            identity: Public user identity (e.g. "sip:alice@example.com")
            trail: Trace trail id

        Returns:
            (found, xml) - found is False on 404, errors and timeouts
        """
        if not self._client:
            log.error("HSS client not initialized")
            return False, ""

        path = f"/filtercriteria/{quote(identity, safe='')}"
        self._trace.log(HSS_REQUEST, trail, {"identity": identity, "path": path})

        try:
            response = await self._client.get(path)
        except httpx.TimeoutException:
            log.warning(f"HSS lookup timeout for {identity}")
            self._trace.log(HSS_ERROR, trail, {"identity": identity, "error": "Timeout"})
            return False, ""
        except httpx.HTTPError as e:
            log.warning(f"HSS lookup error for {identity}: {e}")
            self._trace.log(HSS_ERROR, trail, {"identity": identity, "error": str(e)})
            return False, ""

        if response.status_code == 200:
            self._trace.log(
                HSS_RESPONSE,
                trail,
                {"identity": identity, "status": 200, "length": len(response.text)},
            )
            return True, response.text

        if response.status_code == 404:
            log.info(f"No iFC document for {identity}")
        else:
            log.warning(f"HSS lookup failed for {identity}: HTTP {response.status_code}")
        self._trace.log(
            HSS_ERROR,
            trail,
            {"identity": identity, "status": response.status_code},
        )
        return False, ""
