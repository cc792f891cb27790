"""Backend selection for the ENUM service."""

import logging
from typing import Optional

from callrouting.config import (
    ENUM_BACKEND,
    ENUM_DNS_TIMEOUT,
    ENUM_FILE,
    ENUM_SERVER,
    ENUM_SUFFIX,
)
from callrouting.enumservice.base import EnumService
from callrouting.enumservice.dns_service import DNSEnumService
from callrouting.enumservice.json_service import JSONEnumService
from callrouting.exceptions import EnumConfigError
from callrouting.trace import TraceLogger

log = logging.getLogger(__name__)


def create_enum_service(
    backend: str = ENUM_BACKEND,
    enum_file: str = ENUM_FILE,
    server: str = ENUM_SERVER,
    suffix: str = ENUM_SUFFIX,
    timeout: float = ENUM_DNS_TIMEOUT,
    trace: Optional[TraceLogger] = None,
) -> EnumService:
    """Build the configured ENUM backend.

    Raises:
        EnumConfigError: For an unknown backend or an invalid DNS server
    """
    backend = backend.lower()
    if backend == "json":
        log.info(f"Using static ENUM configuration from {enum_file}")
        return JSONEnumService(enum_file, trace=trace)
    if backend == "dns":
        log.info(f"Using DNS ENUM server {server} with suffix {suffix}")
        return DNSEnumService(server=server, suffix=suffix, trace=trace, timeout=timeout)
    raise EnumConfigError(f"Unknown ENUM backend: {backend!r}")
