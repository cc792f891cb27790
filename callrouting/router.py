"""Call routing facade.

The two decisions the call-processing pipeline asks for: which
application servers see this request, and where a dialled number goes.
"""

import logging
from typing import Iterable, Optional

from callrouting.enumservice.base import EnumService
from callrouting.ifc.handler import FilterDocumentSource, IfcHandler
from callrouting.ifc.models import SessionCase
from callrouting.sip.models import SIPRequest
from callrouting.trace import TraceLogger, get_trace_logger

log = logging.getLogger(__name__)


class CallRouter:
    """Routing decisions for one application server instance.

    Holds no per-call state; one instance is shared by all requests.
    """

    def __init__(
        self,
        hss: FilterDocumentSource,
        enum_service: EnumService,
        home_domains: Iterable[str],
        trace: Optional[TraceLogger] = None,
    ):
        self._trace = trace or get_trace_logger()
        self._ifc_handler = IfcHandler(hss, home_domains, trace=self._trace)
        self._enum_service = enum_service

    async def resolve_served_user_and_as(
        self,
        session_case: SessionCase,
        request: SIPRequest,
        trail: int = 0,
        is_registered: bool = True,
    ) -> tuple[str, list[str]]:
        """Served user and ordered application-server list for a request.

        Never raises for bad subscriber data: the AS list is then empty.
        """
        return await self._ifc_handler.lookup_ifcs(
            session_case, request, trail=trail, is_registered=is_registered
        )

    async def translate_number(self, raw_number: str, trail: int = 0) -> str:
        """Destination URI for a dialled number, "" if there is none."""
        return await self._enum_service.translate(raw_number, trail=trail)
