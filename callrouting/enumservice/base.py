"""ENUM service contract.

Both backends translate a dialled number into a destination URI through
the same ``translate`` call; callers never see backend types.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from callrouting.trace import (
    ENUM_COMPLETE,
    ENUM_FAILED,
    ENUM_START,
    TraceLogger,
    get_trace_logger,
)

log = logging.getLogger(__name__)

_NON_DIGIT = re.compile(r"\D")


def normalize_number(raw_number: str) -> str:
    """Strip everything but digits, keeping a leading '+'.

    >>> normalize_number("1-2.3(4)")
    '1234'
    >>> normalize_number("+1 (510) 858-0271")
    '+15108580271'
    """
    raw_number = raw_number.strip()
    digits = _NON_DIGIT.sub("", raw_number)
    if raw_number.startswith("+") and digits:
        return f"+{digits}"
    return digits


def digits_only(number: str) -> str:
    return _NON_DIGIT.sub("", number)


class EnumService(ABC):
    """Number-to-URI translation.

    Subclasses implement ``_lookup`` on an already normalised, non-empty
    number. ``translate`` never raises on bad rules or network trouble:
    "no match" is an empty string.
    """

    def __init__(self, trace: Optional[TraceLogger] = None):
        self._trace = trace or get_trace_logger()

    async def translate(self, raw_number: str, trail: int = 0) -> str:
        """Translate a dialled number into a destination URI.

        Args:
            raw_number: The number as dialled; punctuation is ignored
            trail: Trace trail id

        Returns:
            Destination URI, or "" for no match / empty input
        """
        number = normalize_number(raw_number)
        if not number:
            log.debug(f"Nothing to translate in {raw_number!r}")
            return ""

        self._trace.log(ENUM_START, trail, {"number": number})
        uri = await self._lookup(number, trail)

        if uri:
            log.info(f"Translated {number} to {uri}")
            self._trace.log(ENUM_COMPLETE, trail, {"number": number, "uri": uri})
        else:
            log.info(f"No ENUM translation for {number}")
            self._trace.log(ENUM_FAILED, trail, {"number": number})
        return uri

    @abstractmethod
    async def _lookup(self, number: str, trail: int) -> str:
        """Backend-specific lookup of a normalised number."""
        ...
