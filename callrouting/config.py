"""Configuration for the call-routing core.

Environment-based configuration with sensible defaults. Values are read
once at import; components also accept explicit arguments so tests and
embedders can bypass the environment.
"""

import ipaddress
import os
from pathlib import Path

# =============================================================================
# Logging Configuration
# =============================================================================

LOG_LEVEL = os.getenv("ROUTING_LOG_LEVEL", "INFO")

# "text" or "json"
LOG_FORMAT = os.getenv("ROUTING_LOG_FORMAT", "text")

# =============================================================================
# Served User Configuration
# =============================================================================

# SIP domains this application server is authoritative for. A served user
# is only derived from URIs in one of these domains.
HOME_DOMAINS = [
    d.strip().lower()
    for d in os.getenv("ROUTING_HOME_DOMAINS", "localhost").split(",")
    if d.strip()
]

# =============================================================================
# HSS (subscriber data) Configuration
# =============================================================================

HSS_URL = os.getenv("ROUTING_HSS_URL", "http://localhost:8888")
HSS_TIMEOUT = float(os.getenv("ROUTING_HSS_TIMEOUT", "2.0"))

# =============================================================================
# ENUM Configuration
# =============================================================================

# Backend: "json" (static number blocks) or "dns" (NAPTR chain)
ENUM_BACKEND = os.getenv("ROUTING_ENUM_BACKEND", "json").lower()

# Static number-block file for the json backend
ENUM_FILE = os.getenv("ROUTING_ENUM_FILE", "/etc/callrouting/enum.json")

# DNS server and root suffix for the dns backend
ENUM_SERVER = os.getenv("ROUTING_ENUM_SERVER", "127.0.0.1")
ENUM_SUFFIX = os.getenv("ROUTING_ENUM_SUFFIX", ".e164.arpa")

# Per-query timeout (seconds) - short so a dead server can't stall call setup
ENUM_DNS_TIMEOUT = float(os.getenv("ROUTING_ENUM_DNS_TIMEOUT", "2.0"))

# =============================================================================
# Trace Configuration
# =============================================================================

# Empty disables the JSONL trace file; the in-memory buffer is always kept
TRACE_LOG_DIR = os.getenv("ROUTING_TRACE_LOG_DIR", "")
TRACE_BUFFER_SIZE = int(os.getenv("ROUTING_TRACE_BUFFER_SIZE", "1000"))


def validate_config() -> list[str]:
    """Validate configuration and return list of issues."""
    issues = []

    if ENUM_BACKEND not in ("json", "dns"):
        issues.append(f"Invalid ROUTING_ENUM_BACKEND: {ENUM_BACKEND}")

    if ENUM_BACKEND == "json" and not Path(ENUM_FILE).exists():
        issues.append(f"ENUM file not found: {ENUM_FILE}")

    if ENUM_BACKEND == "dns":
        try:
            ipaddress.ip_address(ENUM_SERVER)
        except ValueError:
            issues.append(f"ROUTING_ENUM_SERVER is not an IP address: {ENUM_SERVER}")
        if ENUM_DNS_TIMEOUT <= 0:
            issues.append("ROUTING_ENUM_DNS_TIMEOUT must be positive")

    if HSS_TIMEOUT <= 0:
        issues.append("ROUTING_HSS_TIMEOUT must be positive")

    if not HOME_DOMAINS:
        issues.append("ROUTING_HOME_DOMAINS must name at least one domain")

    if LOG_FORMAT not in ("text", "json"):
        issues.append(f"Invalid ROUTING_LOG_FORMAT: {LOG_FORMAT}")

    if TRACE_BUFFER_SIZE <= 0:
        issues.append("ROUTING_TRACE_BUFFER_SIZE must be positive")

    return issues
