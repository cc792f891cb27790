"""SIP message parser.

RFC 3261 request parser producing the context that service point
triggers are evaluated against. It is deliberately lenient about
headers it doesn't understand and strict only about the request line.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from callrouting.sip.models import SIPRequest, canonical_header_name

log = logging.getLogger(__name__)

# Regex patterns for SIP parsing
REQUEST_LINE_PATTERN = re.compile(r"^([A-Za-z]+)\s+(\S+)\s+(SIP/[\d.]+)$")
HEADER_PATTERN = re.compile(r"^([^:\s]+)\s*:\s*(.*)$")

# name-addr: ["Display Name"] <uri>;params
NAME_ADDR_PATTERN = re.compile(r"<([^>]*)>")

# sip:user@host:port;params?headers
SIP_URI_PATTERN = re.compile(
    r"^(sips?):(?:([^@;?]+)@)?([^:;?]+)(?::(\d+))?([;?].*)?$",
    re.IGNORECASE,
)


@dataclass
class SipUri:
    """The parts of a sip:/sips: URI that routing cares about."""

    scheme: str
    user: Optional[str]
    host: str
    port: Optional[int] = None


def extract_uri(header_value: str) -> str:
    """Extract the URI from a From/To style header value.

    Handles name-addr (``"Alice" <sip:alice@example.com>;tag=1``) and
    addr-spec (``sip:alice@example.com;tag=1``) forms. Header parameters
    after an addr-spec are dropped.
    """
    header_value = header_value.strip()
    match = NAME_ADDR_PATTERN.search(header_value)
    if match:
        return match.group(1).strip()
    # addr-spec: header params follow the first ';'
    return header_value.split(";", 1)[0].strip()


def parse_sip_uri(uri: str) -> Optional[SipUri]:
    """Split a sip:/sips: URI into scheme, user, host and port.

    Returns:
        SipUri, or None for other schemes and malformed URIs
    """
    match = SIP_URI_PATTERN.match(uri.strip())
    if not match:
        return None
    scheme, user, host, port, _ = match.groups()
    return SipUri(
        scheme=scheme.lower(),
        user=user,
        host=host.lower(),
        port=int(port) if port else None,
    )


def parse_sip_request(data: bytes) -> Optional[SIPRequest]:
    """Parse a SIP request from raw bytes.

    Extracts the request line, every header (unfolding continuation
    lines) and the body.

    Args:
        data: Raw SIP message bytes

    Returns:
        SIPRequest if valid, None if malformed
    """
    text = data.decode("utf-8", errors="replace")
    text = text.replace("\r\n", "\n")

    head, _, body = text.partition("\n\n")
    lines = head.split("\n")
    if not lines or not lines[0].strip():
        log.warning("Empty SIP message")
        return None

    request_line = lines[0].strip()
    match = REQUEST_LINE_PATTERN.match(request_line)
    if not match:
        log.warning(f"Invalid request line: {request_line[:50]}")
        return None

    method, request_uri, sip_version = match.groups()

    request = SIPRequest(
        method=method.upper(),
        request_uri=request_uri,
        sip_version=sip_version,
        body=body,
        raw=data,
    )

    headers: list[tuple[str, str]] = []
    for line in lines[1:]:
        # Header folding (RFC 3261 §7.3.1)
        if line[:1] in (" ", "\t") and headers:
            name, value = headers[-1]
            headers[-1] = (name, f"{value} {line.strip()}")
            continue

        match = HEADER_PATTERN.match(line.strip())
        if not match:
            if line.strip():
                log.debug(f"Skipping unparseable header line: {line[:50]}")
            continue
        headers.append((match.group(1), match.group(2).strip()))

    request.headers = headers

    for name, value in headers:
        canonical = canonical_header_name(name)
        if canonical == "from" and not request.from_header:
            request.from_header = value
        elif canonical == "to" and not request.to_header:
            request.to_header = value
        elif canonical == "call-id" and not request.call_id:
            request.call_id = value
        elif canonical == "content-type" and request.content_type is None:
            request.content_type = value

    if not request.from_header:
        log.warning(f"Missing From header in {method} request")
        return None
    if not request.to_header:
        log.warning(f"Missing To header in {method} request")
        return None

    log.debug(
        f"Parsed {request.method} request: uri={request.request_uri} "
        f"headers={len(headers)} body={len(body)} bytes"
    )
    return request
