"""iFC data models.

Typed form of a subscriber's Initial Filter Criteria (3GPP TS 29.228
Annex B/F). Everything here is immutable and built fresh from the XML
document for each evaluation.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Protocol, Union

from callrouting.sip.models import SIPRequest, canonical_header_name


class SessionCase(Enum):
    """Which leg of the session the served user is on."""

    ORIGINATING = "originating"
    TERMINATING = "terminating"
    ORIGINATING_CDIV = "originating-cdiv"

    @property
    def is_originating(self) -> bool:
        return self is not SessionCase.TERMINATING


class ProfilePartIndicator(IntEnum):
    """ProfilePartIndicator values: which registration state a criterion applies to."""

    REGISTERED = 0
    UNREGISTERED = 1


@dataclass(frozen=True)
class MatchContext:
    """Everything a service point trigger can look at."""

    request: SIPRequest
    session_case: SessionCase
    is_registered: bool


class Condition(Protocol):
    """An SPT predicate. Evaluated independently of grouping and negation."""

    def matches(self, ctx: MatchContext) -> bool:
        ...


@dataclass(frozen=True)
class RequestUriCondition:
    """<RequestURI>: regex searched against the Request-URI."""

    pattern: re.Pattern

    def matches(self, ctx: MatchContext) -> bool:
        return self.pattern.search(ctx.request.request_uri) is not None


@dataclass(frozen=True)
class MethodCondition:
    """<Method>: case-insensitive method name comparison."""

    method: str

    def matches(self, ctx: MatchContext) -> bool:
        return ctx.request.method.upper() == self.method.upper()


@dataclass(frozen=True)
class SipHeaderCondition:
    """<SIPHeader>: header present, optionally with matching content.

    ``header`` must match the whole header name; ``content`` is searched
    within each value of that header.
    """

    header: re.Pattern
    content: Optional[re.Pattern] = None

    def matches(self, ctx: MatchContext) -> bool:
        for name, value in ctx.request.headers:
            # Compact forms ("f") must still match a trigger on "From"
            names = (name.strip(), canonical_header_name(name))
            if not any(self.header.fullmatch(n) for n in names):
                continue
            if self.content is None or self.content.search(value):
                return True
        return False


# <SessionCase> codes
SESSION_CASE_ORIGINATING_REGISTERED = 0
SESSION_CASE_TERMINATING_REGISTERED = 1
SESSION_CASE_TERMINATING_UNREGISTERED = 2
SESSION_CASE_ORIGINATING_UNREGISTERED = 3
SESSION_CASE_ORIGINATING_CDIV = 4


@dataclass(frozen=True)
class SessionCaseCondition:
    """<SessionCase>: 0..4 per TS 29.228 Annex F."""

    value: int

    def matches(self, ctx: MatchContext) -> bool:
        case = ctx.session_case
        if self.value == SESSION_CASE_ORIGINATING_CDIV:
            return case is SessionCase.ORIGINATING_CDIV
        if self.value == SESSION_CASE_ORIGINATING_REGISTERED:
            return case is SessionCase.ORIGINATING and ctx.is_registered
        if self.value == SESSION_CASE_ORIGINATING_UNREGISTERED:
            return case is SessionCase.ORIGINATING and not ctx.is_registered
        if self.value == SESSION_CASE_TERMINATING_REGISTERED:
            return case is SessionCase.TERMINATING and ctx.is_registered
        if self.value == SESSION_CASE_TERMINATING_UNREGISTERED:
            return case is SessionCase.TERMINATING and not ctx.is_registered
        return False


@dataclass(frozen=True)
class SessionDescriptionCondition:
    """<SessionDescription>: SDP line type with optional content regex."""

    line: re.Pattern
    content: Optional[re.Pattern] = None

    def matches(self, ctx: MatchContext) -> bool:
        for line_type, value in ctx.request.sdp_lines():
            if not self.line.fullmatch(line_type):
                continue
            if self.content is None or self.content.search(value):
                return True
        return False


@dataclass(frozen=True)
class ServicePointTrigger:
    """A single SPT: predicate, negation and group membership."""

    condition: Condition
    negated: bool = False
    groups: tuple[int, ...] = ()


@dataclass(frozen=True)
class TriggerPoint:
    """<TriggerPoint>: SPTs combined in conjunctive or disjunctive normal form."""

    combine_as_cnf: bool
    spts: tuple[ServicePointTrigger, ...] = ()


@dataclass(frozen=True)
class FilterCriterion:
    """<InitialFilterCriteria> after validation."""

    index: int
    priority: int = 0
    profile_part_indicator: Optional[ProfilePartIndicator] = None
    trigger: Optional[TriggerPoint] = None
    application_server: Optional[str] = None


@dataclass(frozen=True)
class CriterionFault:
    """An <InitialFilterCriteria> that could not be interpreted."""

    index: int
    reason: str


ProfileEntry = Union[FilterCriterion, CriterionFault]


@dataclass(frozen=True)
class ServiceProfile:
    """<ServiceProfile>: criteria and faults in document order."""

    entries: tuple[ProfileEntry, ...] = field(default_factory=tuple)

    @property
    def criteria(self) -> list[FilterCriterion]:
        return [e for e in self.entries if isinstance(e, FilterCriterion)]

    @property
    def faults(self) -> list[CriterionFault]:
        return [e for e in self.entries if isinstance(e, CriterionFault)]
