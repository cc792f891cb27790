"""SIP request model used as the iFC match context.

Only what service point triggers inspect is kept: the request line,
every header in arrival order, and the body.
"""

from dataclasses import dataclass, field
from typing import Optional

# RFC 3261 §7.3.3 compact header forms
COMPACT_HEADERS = {
    "i": "call-id",
    "m": "contact",
    "e": "content-encoding",
    "l": "content-length",
    "c": "content-type",
    "f": "from",
    "k": "supported",
    "s": "subject",
    "t": "to",
    "v": "via",
}


def canonical_header_name(name: str) -> str:
    """Lower-case a header name and expand its compact form."""
    name = name.strip().lower()
    return COMPACT_HEADERS.get(name, name)


@dataclass
class SIPRequest:
    """Parsed SIP request.

    Headers are kept as an ordered list of (name, value) pairs with the
    name as received, so repeated headers and header order survive for
    SIPHeader triggers.
    """

    method: str
    request_uri: str
    sip_version: str = "SIP/2.0"

    headers: list[tuple[str, str]] = field(default_factory=list)

    # Convenience copies of the headers routing looks at directly
    from_header: str = ""
    to_header: str = ""
    call_id: str = ""

    content_type: Optional[str] = None
    body: str = ""

    # Raw message for debugging
    raw: bytes = b""

    def header_values(self, name: str) -> list[str]:
        """All values of a header, matched case-insensitively (compact forms too)."""
        wanted = canonical_header_name(name)
        return [v for n, v in self.headers if canonical_header_name(n) == wanted]

    def sdp_lines(self) -> list[tuple[str, str]]:
        """SDP body as (type, value) pairs; empty if the body is not SDP."""
        if not self.body:
            return []
        if self.content_type and "application/sdp" not in self.content_type.lower():
            return []

        lines = []
        for line in self.body.replace("\r\n", "\n").split("\n"):
            line = line.strip()
            if len(line) < 2 or line[1] != "=":
                continue
            lines.append((line[0], line[2:]))
        return lines
