"""Static ENUM backend.

Number blocks are loaded once from a JSON file::

    {
      "number_blocks": [
        {"name": "Local", "prefix": "+1510858", "domain": "example.com"},
        {"prefix": "011", "domain": "gw.example.com", "regex": "!^011(.*)$!+\\\\1!"}
      ]
    }

The longest configured prefix of the normalised number selects a block
(first loaded wins a tie). The result is ``sip:<number>@<domain>``, with
the block's rewrite applied to the number first when it has one.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from callrouting.enumservice.base import EnumService
from callrouting.enumservice.naptr import RewriteRule
from callrouting.exceptions import RewriteRuleError
from callrouting.trace import ENUM_MATCH, TraceLogger

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NumberBlock:
    """One configured number block."""

    prefix: str
    domain: str
    rewrite: Optional[RewriteRule] = None
    name: str = ""
    # Set when the block's regex is unusable; lookups hitting it fail
    rewrite_error: str = ""

    def uri_for(self, number: str) -> Optional[str]:
        """Build the destination URI, or None if the rewrite doesn't match."""
        if self.rewrite_error:
            return None
        user = number
        if self.rewrite is not None:
            user = self.rewrite.apply(number)
            if user is None:
                return None
        return f"sip:{user}@{self.domain}"


def _block_json(block: Any) -> str:
    try:
        return json.dumps(block, indent=1)
    except (TypeError, ValueError):
        return repr(block)


def parse_number_block(block: Any) -> Optional[NumberBlock]:
    """Validate one entry of ``number_blocks``; None (logged) if malformed.

    A block with a bad regex is still returned, with ``rewrite_error`` set,
    so it keeps claiming its prefix.
    """
    if not isinstance(block, dict):
        log.error(f"Badly formed ENUM number block (not an object)\n{_block_json(block)}")
        return None

    prefix = block.get("prefix")
    domain = block.get("domain")
    if not isinstance(prefix, str) or not isinstance(domain, str) or not domain.strip():
        log.error(f"Badly formed ENUM number block (missing prefix or domain)\n{_block_json(block)}")
        return None

    rewrite = None
    rewrite_error = ""
    regex = block.get("regex")
    if regex is not None:
        try:
            if not isinstance(regex, str):
                raise RewriteRuleError(f"Regex is not a string: {regex!r}")
            rewrite = RewriteRule.parse(regex, strict=False)
        except RewriteRuleError as e:
            rewrite_error = str(e)
            log.error(
                f"Badly formed regular expression in ENUM number block: {e}\n{_block_json(block)}"
            )

    name = block.get("name")
    return NumberBlock(
        prefix=prefix.strip(),
        domain=domain.strip(),
        rewrite=rewrite,
        name=name if isinstance(name, str) else "",
        rewrite_error=rewrite_error,
    )


class JSONEnumService(EnumService):
    """ENUM translation from statically configured number blocks.

    A file that can't be read or parsed, or has no ``number_blocks``
    list, leaves the service with no rules: every lookup returns "".
    """

    def __init__(self, path: str, trace: Optional[TraceLogger] = None):
        super().__init__(trace)
        self._path = path
        self._index: dict[str, NumberBlock] = {}
        self._prefix_lengths: list[int] = []
        self._load()

    def _load(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.error(f"Failed to read ENUM configuration data from {self._path}: {e}")
            return

        blocks = data.get("number_blocks") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            log.error("Badly formed ENUM configuration data - missing number_blocks object")
            return

        for raw_block in blocks:
            block = parse_number_block(raw_block)
            if block is None:
                continue
            # First definition of a prefix wins
            self._index.setdefault(block.prefix, block)

        self._prefix_lengths = sorted({len(p) for p in self._index}, reverse=True)
        log.info(f"Loaded {len(self._index)} ENUM number blocks from {self._path}")

    @property
    def block_count(self) -> int:
        return len(self._index)

    def match_block(self, number: str) -> Optional[NumberBlock]:
        """Longest configured prefix of ``number``."""
        for length in self._prefix_lengths:
            if length > len(number):
                continue
            block = self._index.get(number[:length])
            if block is not None:
                return block
        return None

    async def _lookup(self, number: str, trail: int) -> str:
        block = self.match_block(number)
        if block is None:
            log.debug(f"No ENUM number block matches {number}")
            return ""

        if block.rewrite_error:
            log.warning(
                f"ENUM number block {block.prefix!r} has an unusable regex, not translating {number}"
            )
            return ""

        uri = block.uri_for(number)
        if uri is None:
            log.warning(f"ENUM number block {block.prefix!r} regex does not match {number}")
            return ""

        self._trace.log(
            ENUM_MATCH,
            trail,
            {"number": number, "prefix": block.prefix, "name": block.name, "uri": uri},
        )
        return uri
