"""SIP message context for routing decisions."""

from callrouting.sip.models import SIPRequest, canonical_header_name
from callrouting.sip.parser import (
    SipUri,
    extract_uri,
    parse_sip_request,
    parse_sip_uri,
)

__all__ = [
    "SIPRequest",
    "SipUri",
    "canonical_header_name",
    "extract_uri",
    "parse_sip_request",
    "parse_sip_uri",
]
