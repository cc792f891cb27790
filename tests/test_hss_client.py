"""Tests for the HSS subscriber-data client.

Coverage target: callrouting/hss/client.py
"""

import httpx
import pytest

from callrouting.hss import HssConnection
from callrouting.trace import HSS_ERROR, HSS_REQUEST, HSS_RESPONSE
from tests.fixtures.ifc_documents import BASIC_PROFILE

IDENTITY = "sip:6505551234@homedomain"


def transport_returning(status_code, text=""):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, text=text)

    return httpx.MockTransport(handler), seen


class TestFetchFilterDocument:
    """Test iFC document retrieval."""

    @pytest.mark.asyncio
    async def test_found(self, trace):
        """Test a 200 returns the document."""
        transport, seen = transport_returning(200, BASIC_PROFILE)

        async with HssConnection("http://hss.test", trace=trace, transport=transport) as hss:
            found, document = await hss.fetch_filter_document(IDENTITY, trail=3)

        assert found is True
        assert document == BASIC_PROFILE
        assert len(seen) == 1
        assert seen[0].method == "GET"
        assert seen[0].url.path == f"/filtercriteria/{IDENTITY}"
        assert b"sip%3A6505551234%40homedomain" in seen[0].url.raw_path

        events = [e["event"] for e in trace.get_recent_events(trail=3)]
        assert events == [HSS_RESPONSE, HSS_REQUEST]

    @pytest.mark.asyncio
    async def test_not_found(self, trace):
        """Test a 404 means no document."""
        transport, _ = transport_returning(404)

        async with HssConnection("http://hss.test", trace=trace, transport=transport) as hss:
            result = await hss.fetch_filter_document(IDENTITY)

        assert result == (False, "")
        error = trace.get_recent_events(event_filter=HSS_ERROR)[0]
        assert error["details"]["status"] == 404

    @pytest.mark.asyncio
    async def test_server_error(self, trace):
        """Test a 5xx means no document."""
        transport, _ = transport_returning(503, "busy")

        async with HssConnection("http://hss.test", trace=trace, transport=transport) as hss:
            assert await hss.fetch_filter_document(IDENTITY) == (False, "")

    @pytest.mark.asyncio
    async def test_timeout(self, trace):
        """Test a timeout means no document."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with HssConnection(
            "http://hss.test", trace=trace, transport=httpx.MockTransport(handler)
        ) as hss:
            assert await hss.fetch_filter_document(IDENTITY) == (False, "")

        error = trace.get_recent_events(event_filter=HSS_ERROR)[0]
        assert error["details"]["error"] == "Timeout"

    @pytest.mark.asyncio
    async def test_connection_error(self, trace):
        """Test a connection failure means no document."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with HssConnection(
            "http://hss.test", trace=trace, transport=httpx.MockTransport(handler)
        ) as hss:
            assert await hss.fetch_filter_document(IDENTITY) == (False, "")

    @pytest.mark.asyncio
    async def test_not_initialized(self, trace):
        """Test use outside the context manager fails soft."""
        hss = HssConnection("http://hss.test", trace=trace)
        assert await hss.fetch_filter_document(IDENTITY) == (False, "")
