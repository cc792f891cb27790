"""NAPTR records, rewrite rules and the DNS resolver adapter.

A rewrite string is the RFC 3402 substitution expression
``<d>match<d>replacement<d>flags``: the first character is the
delimiter, the replacement may use ``\\1``..``\\9`` backreferences, and
the trailing flags field is ignored.

NAPTR service and flags fields compare case-insensitively (RFC 3403
section 4.1), so ``E2U+SIP`` and ``U`` are accepted.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Protocol

import dns.asyncresolver
import dns.exception
import dns.resolver

from callrouting.config import ENUM_DNS_TIMEOUT
from callrouting.exceptions import RewriteRuleError

log = logging.getLogger(__name__)

# Services that yield a SIP URI (RFC 6116, RFC 4769)
ENUM_SERVICES = frozenset({"e2u+sip", "e2u+pstn:sip"})

UINT16_MAX = 65535

_TEMPLATE_ESCAPE = re.compile(r"\\(\d|.)", re.DOTALL)


@dataclass(frozen=True)
class RewriteRule:
    """Compiled substitution expression."""

    pattern: re.Pattern
    replacement: str

    @classmethod
    def parse(cls, expression: str, strict: bool = True) -> "RewriteRule":
        """Parse a delimited ``<d>match<d>replacement<d>flags`` string.

        With ``strict`` off, fields after the flags are ignored rather than
        rejected.

        Raises:
            RewriteRuleError: On a wrong field count, an empty or invalid
                match expression, or a backreference to a missing group
        """
        if not expression or len(expression) < 2:
            raise RewriteRuleError(f"Rewrite rule too short: {expression!r}")

        delim = expression[0]
        if delim.isdigit() or delim == "\\":
            raise RewriteRuleError(f"Invalid delimiter in rewrite rule: {expression!r}")

        fields = re.split(r"(?<!\\)" + re.escape(delim), expression)
        if len(fields) < 4 or (strict and len(fields) != 4) or fields[0] != "":
            raise RewriteRuleError(
                f"Rewrite rule needs three delimited fields: {expression!r}"
            )

        match_expr, replacement, _flags = (f.replace("\\" + delim, delim) for f in fields[1:4])
        if not match_expr:
            raise RewriteRuleError(f"Empty match expression: {expression!r}")

        try:
            pattern = re.compile(match_expr)
        except re.error as e:
            raise RewriteRuleError(f"Invalid regular expression {match_expr!r}: {e}")

        for ref in re.findall(r"\\(\d)", replacement):
            if int(ref) > pattern.groups:
                raise RewriteRuleError(
                    f"Backreference \\{ref} exceeds {pattern.groups} groups in {expression!r}"
                )

        return cls(pattern=pattern, replacement=replacement)

    def apply(self, subject: str) -> Optional[str]:
        """Apply the substitution to the first match in ``subject``.

        Returns:
            The rewritten string, or None if the expression doesn't match
        """
        match = self.pattern.search(subject)
        if match is None:
            return None

        def expand(m: re.Match) -> str:
            token = m.group(1)
            if token.isdigit():
                return match.group(int(token)) or ""
            return token

        substituted = _TEMPLATE_ESCAPE.sub(expand, self.replacement)
        return subject[:match.start()] + substituted + subject[match.end():]


@dataclass(frozen=True)
class NAPTRRecord:
    """One NAPTR answer record as received."""

    order: int
    preference: int
    flags: str
    service: str
    regexp: str
    replacement: str = "."


@dataclass(frozen=True)
class EnumRule:
    """A NAPTR record that qualifies as an ENUM rewrite rule."""

    order: int
    preference: int
    terminal: bool
    rewrite: RewriteRule

    @classmethod
    def from_record(cls, record: NAPTRRecord) -> Optional["EnumRule"]:
        """Validate a NAPTR record.

        Returns:
            EnumRule, or None if the record is disqualified (wrong
            service, invalid flags, out-of-range order/preference or a
            malformed rewrite string)
        """
        if record.service.lower() not in ENUM_SERVICES:
            log.debug(f"Ignoring NAPTR record with service {record.service!r}")
            return None

        flags = record.flags.lower()
        if flags == "u":
            terminal = True
        elif flags == "":
            terminal = False
        else:
            log.warning(f"Ignoring NAPTR record with invalid flags {record.flags!r}")
            return None

        if not (0 <= record.order <= UINT16_MAX and 0 <= record.preference <= UINT16_MAX):
            log.warning(
                f"Ignoring NAPTR record with order/preference out of range: "
                f"{record.order}/{record.preference}"
            )
            return None

        try:
            rewrite = RewriteRule.parse(record.regexp)
        except RewriteRuleError as e:
            log.warning(f"Ignoring NAPTR record with bad regexp: {e}")
            return None

        return cls(
            order=record.order,
            preference=record.preference,
            terminal=terminal,
            rewrite=rewrite,
        )


def select_rules(records: list[NAPTRRecord]) -> list[EnumRule]:
    """Qualifying rules in (order, preference) order, reply order on ties."""
    rules = [rule for rule in map(EnumRule.from_record, records) if rule is not None]
    rules.sort(key=lambda r: (r.order, r.preference))
    return rules


class NAPTRResolver(Protocol):
    """DNS resolver abstraction used by the DNS ENUM backend."""

    async def query_naptr(self, name: str, server: str) -> list[NAPTRRecord]:
        ...


class DnspythonResolver:
    """NAPTR lookups with dnspython's asyncio resolver.

    Each query goes to the given server only and is bounded by the
    configured lifetime; every failure comes back as an empty list.
    """

    def __init__(self, timeout: float = ENUM_DNS_TIMEOUT, port: int = 53):
        self._timeout = timeout
        self._port = port

    async def query_naptr(self, name: str, server: str) -> list[NAPTRRecord]:
        resolver = dns.asyncresolver.Resolver(configure=False)
        resolver.nameservers = [server]
        resolver.port = self._port
        resolver.timeout = self._timeout
        resolver.lifetime = self._timeout

        try:
            answer = await resolver.resolve(name, "NAPTR")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            log.info(f"No NAPTR records for {name}")
            return []
        except dns.exception.Timeout:
            log.warning(f"NAPTR query for {name} to {server} timed out")
            return []
        except dns.exception.DNSException as e:
            log.warning(f"NAPTR query for {name} to {server} failed: {e}")
            return []

        return [
            NAPTRRecord(
                order=rdata.order,
                preference=rdata.preference,
                flags=rdata.flags.decode("ascii", errors="replace"),
                service=rdata.service.decode("ascii", errors="replace"),
                regexp=rdata.regexp.decode("utf-8", errors="replace"),
                replacement=rdata.replacement.to_text(),
            )
            for rdata in answer
        ]
