"""ENUM number translation: static JSON and DNS NAPTR backends."""

from callrouting.enumservice.base import EnumService, normalize_number
from callrouting.enumservice.dns_service import MAX_DNS_QUERIES, DNSEnumService, enum_domain
from callrouting.enumservice.factory import create_enum_service
from callrouting.enumservice.json_service import JSONEnumService, NumberBlock
from callrouting.enumservice.naptr import (
    DnspythonResolver,
    EnumRule,
    NAPTRRecord,
    NAPTRResolver,
    RewriteRule,
)

__all__ = [
    "DNSEnumService",
    "DnspythonResolver",
    "EnumRule",
    "EnumService",
    "JSONEnumService",
    "MAX_DNS_QUERIES",
    "NAPTRRecord",
    "NAPTRResolver",
    "NumberBlock",
    "RewriteRule",
    "create_enum_service",
    "enum_domain",
    "normalize_number",
]
