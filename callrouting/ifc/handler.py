"""iFC handler.

Works out who the served user of a request is, fetches their filter
criteria and returns the application servers that should see the
request.
"""

import logging
from typing import Iterable, Optional, Protocol

from callrouting.ifc.evaluator import calculate_application_servers
from callrouting.ifc.models import SessionCase
from callrouting.sip.models import SIPRequest
from callrouting.sip.parser import extract_uri, parse_sip_uri
from callrouting.trace import IFC_EVALUATED, TraceLogger, get_trace_logger

log = logging.getLogger(__name__)


class FilterDocumentSource(Protocol):
    """The subscriber-data connector as seen by the iFC handler."""

    async def fetch_filter_document(self, identity: str, trail: int = 0) -> tuple[bool, str]:
        ...


def user_from_uri(uri: str) -> str:
    """Reduce a SIP URI to ``scheme:user@host``.

    Display name, port, URI parameters and headers are stripped.
    Returns an empty string for anything that is not a sip:/sips: URI.
    """
    parsed = parse_sip_uri(extract_uri(uri))
    if parsed is None:
        return ""
    if parsed.user:
        return f"{parsed.scheme}:{parsed.user}@{parsed.host}"
    return f"{parsed.scheme}:{parsed.host}"


def served_user_from_msg(
    session_case: SessionCase,
    request: SIPRequest,
    home_domains: Iterable[str],
) -> str:
    """Extract the served user from a SIP request.

    Originating cases take the user from the From header, terminating
    from the Request-URI. Only users in one of our home domains are
    served.

    Returns:
        The identity to look up in the HSS, or "" if there is no local
        served user
    """
    if session_case.is_originating:
        uri = extract_uri(request.from_header)
    else:
        uri = request.request_uri

    parsed = parse_sip_uri(uri)
    if parsed is None:
        return ""

    domains = {d.lower() for d in home_domains}
    if parsed.host not in domains:
        return ""

    return user_from_uri(uri)


class IfcHandler:
    """Served user and AS list lookup for incoming requests."""

    def __init__(
        self,
        hss: FilterDocumentSource,
        home_domains: Iterable[str],
        trace: Optional[TraceLogger] = None,
    ):
        self._hss = hss
        self._home_domains = [d.lower() for d in home_domains]
        self._trace = trace or get_trace_logger()

    async def lookup_ifcs(
        self,
        session_case: SessionCase,
        request: SIPRequest,
        trail: int = 0,
        is_registered: bool = True,
    ) -> tuple[str, list[str]]:
        """Get the served user and the application servers for a request.

        Args:
            session_case: Which leg of the session this is
            request: The request starting the dialog
            trail: Trace trail id
            is_registered: Whether the served user is registered (from
                the registrar's binding store)

        Returns:
            (served_user, application_servers); the list is empty when
            there is no served user or no iFC document
        """
        served_user = served_user_from_msg(session_case, request, self._home_domains)

        if not served_user:
            log.info("No served user")
            return "", []

        log.debug(f"Fetching IFC information for {served_user}")
        found, ifc_xml = await self._hss.fetch_filter_document(served_user, trail)
        if not found or not ifc_xml:
            log.info("No iFC found - no processing will be applied")
            return served_user, []

        servers = calculate_application_servers(session_case, is_registered, request, ifc_xml)
        self._trace.log(
            IFC_EVALUATED,
            trail,
            {
                "served_user": served_user,
                "session_case": session_case.value,
                "registered": is_registered,
                "application_servers": servers,
            },
        )
        return served_user, servers
