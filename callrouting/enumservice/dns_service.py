"""DNS ENUM backend.

Resolves numbers through chains of NAPTR records (RFC 6116). Every
rewrite is applied to the original number, the application-unique
string; a non-terminal rule's output only chooses the next domain to
query. Chains are cut off after MAX_DNS_QUERIES queries so a rule that
rewrites a number to itself can't hang the call.
"""

import ipaddress
import logging
from typing import Optional

from callrouting.config import ENUM_DNS_TIMEOUT, ENUM_SERVER, ENUM_SUFFIX
from callrouting.enumservice.base import EnumService, digits_only
from callrouting.enumservice.naptr import (
    DnspythonResolver,
    NAPTRRecord,
    NAPTRResolver,
    select_rules,
)
from callrouting.exceptions import EnumConfigError
from callrouting.trace import (
    ENUM_DNS_ERROR,
    ENUM_DNS_REQUEST,
    ENUM_DNS_RESPONSE,
    ENUM_INCOMPLETE,
    ENUM_MATCH,
    TraceLogger,
)

log = logging.getLogger(__name__)

# The original query plus four follow-ups
MAX_DNS_QUERIES = 5


def enum_domain(digits: str, suffix: str) -> str:
    """Reverse the digits one per label and append the suffix.

    >>> enum_domain("1234", ".e164.arpa")
    '4.3.2.1.e164.arpa'
    """
    if suffix and not suffix.startswith("."):
        suffix = "." + suffix
    return ".".join(reversed(digits)) + suffix


class DNSEnumService(EnumService):
    """ENUM translation by querying a DNS server for NAPTR records."""

    def __init__(
        self,
        server: str = ENUM_SERVER,
        suffix: str = ENUM_SUFFIX,
        resolver: Optional[NAPTRResolver] = None,
        trace: Optional[TraceLogger] = None,
        timeout: float = ENUM_DNS_TIMEOUT,
    ):
        """Initialize the DNS backend.

        Args:
            server: IP address of the DNS server to query
            suffix: Root domain appended to the reversed digits
            resolver: NAPTR resolver (defaults to dnspython)
            trace: Trace sink (defaults to the global one)
            timeout: Per-query timeout for the default resolver

        Raises:
            EnumConfigError: If the server is not an IP address
        """
        super().__init__(trace)
        try:
            ipaddress.ip_address(server)
        except ValueError:
            raise EnumConfigError(f"Invalid ENUM server address: {server!r}")

        self._server = server
        self._suffix = suffix
        self._resolver = resolver or DnspythonResolver(timeout=timeout)

    @property
    def server(self) -> str:
        return self._server

    @property
    def suffix(self) -> str:
        return self._suffix

    async def _query(self, name: str, trail: int) -> list[NAPTRRecord]:
        self._trace.log(ENUM_DNS_REQUEST, trail, {"domain": name, "server": self._server})
        try:
            records = await self._resolver.query_naptr(name, self._server)
        except Exception as e:
            log.warning(f"ENUM query for {name} failed: {e}")
            self._trace.log(ENUM_DNS_ERROR, trail, {"domain": name, "error": str(e)})
            return []

        self._trace.log(ENUM_DNS_RESPONSE, trail, {"domain": name, "records": len(records)})
        return records

    async def _lookup(self, number: str, trail: int) -> str:
        aus = number
        key = number
        queries = 0

        while queries < MAX_DNS_QUERIES:
            digits = digits_only(key)
            if not digits:
                log.info(f"ENUM rewrite produced no digits to look up: {key!r}")
                return ""

            name = enum_domain(digits, self._suffix)
            queries += 1
            records = await self._query(name, trail)
            if not records:
                log.debug(f"No NAPTR records for {name}")
                return ""

            next_key = None
            for rule in select_rules(records):
                result = rule.rewrite.apply(aus)
                if result is None:
                    continue

                self._trace.log(
                    ENUM_MATCH,
                    trail,
                    {"domain": name, "order": rule.order, "preference": rule.preference,
                     "terminal": rule.terminal, "result": result},
                )
                if rule.terminal:
                    return result

                next_key = result
                break

            if next_key is None:
                log.info(f"No usable NAPTR rule for {aus} at {name}")
                return ""

            self._trace.log(ENUM_INCOMPLETE, trail, {"domain": name, "next": next_key})
            key = next_key

        log.warning(f"ENUM lookup for {aus} exceeded {MAX_DNS_QUERIES} queries")
        return ""
