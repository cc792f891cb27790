"""Test fixtures for the call-routing core.

Usage:
    from tests.fixtures.sip_messages import build_request
    from tests.fixtures.ifc_documents import service_profile, ifc, trigger, spt
    from tests.fixtures.dns import FakeNAPTRResolver, naptr
"""

from pathlib import Path

ENUM_FIXTURES = Path(__file__).parent / "enum"


def enum_file(name: str) -> str:
    """Path to a JSON ENUM fixture file."""
    return str(ENUM_FIXTURES / name)
