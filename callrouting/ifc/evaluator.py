"""iFC evaluation.

Decides which filter criteria match a request and extracts the ordered
application-server list. Refer to 3GPP TS 29.228 Annex B/C/F for the
semantics.

In CNF (conjunction of disjunctions, a big AND of ORs) each SPT is ORed
into its group(s) and the groups are ANDed together. In DNF it is the
converse.
"""

import logging
from functools import reduce
from types import MappingProxyType
from typing import Mapping

from callrouting.exceptions import IfcDocumentError, IfcError
from callrouting.ifc.models import (
    CriterionFault,
    FilterCriterion,
    MatchContext,
    ProfilePartIndicator,
    ServicePointTrigger,
    ServiceProfile,
    SessionCase,
    TriggerPoint,
)
from callrouting.ifc.parser import parse_service_profile
from callrouting.sip.models import SIPRequest

log = logging.getLogger(__name__)

GroupValues = Mapping[int, bool]


def spt_matches(spt: ServicePointTrigger, ctx: MatchContext) -> bool:
    """Evaluate one SPT including its negation.

    Raises:
        IfcError: If the predicate cannot be evaluated
    """
    try:
        raw = spt.condition.matches(ctx)
    except IfcError:
        raise
    except Exception as e:
        raise IfcError(f"Failed to evaluate SPT {spt.condition!r}: {e}")
    return raw != spt.negated


def fold_spt(cnf: bool, groups: GroupValues, spt: ServicePointTrigger, value: bool) -> GroupValues:
    """Fold one SPT's value into each group it belongs to.

    Returns a new mapping; ``groups`` is left untouched.
    """
    updated = dict(groups)
    for group in spt.groups:
        if group not in updated:
            updated[group] = value
        elif cnf:
            updated[group] = updated[group] or value
        else:
            updated[group] = updated[group] and value
    return MappingProxyType(updated)


def combine_groups(cnf: bool, groups: GroupValues) -> bool:
    """Fold group values into the trigger verdict, starting from the identity."""
    if cnf:
        return reduce(lambda acc, v: acc and v, groups.values(), True)
    return reduce(lambda acc, v: acc or v, groups.values(), False)


def evaluate_trigger(trigger: TriggerPoint, ctx: MatchContext) -> bool:
    """Evaluate a trigger point against the match context.

    A trigger with no SPTs yields the identity value: true for CNF,
    false for DNF. Callers must treat an absent trigger separately.

    Raises:
        IfcError: If any SPT cannot be evaluated
    """
    groups: GroupValues = MappingProxyType({})
    for spt in trigger.spts:
        groups = fold_spt(trigger.combine_as_cnf, groups, spt, spt_matches(spt, ctx))
    return combine_groups(trigger.combine_as_cnf, groups)


def filter_matches(
    criterion: FilterCriterion,
    session_case: SessionCase,
    is_registered: bool,
    ctx: MatchContext,
) -> bool:
    """Check whether the message matches the specified criterion.

    Raises:
        IfcError: If there is a problem evaluating the criterion
    """
    ppi = criterion.profile_part_indicator
    if ppi is not None:
        applies_to_registered = ppi is ProfilePartIndicator.REGISTERED
        if applies_to_registered != is_registered:
            return False

    if criterion.trigger is None:
        return True

    return evaluate_trigger(criterion.trigger, ctx)


def select_application_servers(
    profile: ServiceProfile,
    session_case: SessionCase,
    is_registered: bool,
    ctx: MatchContext,
) -> list[str]:
    """Determine the application servers whose criteria match.

    Criteria that can't be parsed or evaluated are logged and skipped;
    the rest are still applied.

    Returns:
        Server names in ascending priority, document order within a priority
    """
    matched: list[tuple[int, int, str]] = []

    for entry in profile.entries:
        if isinstance(entry, CriterionFault):
            log.error(f"iFC evaluation error in criterion {entry.index}: {entry.reason}")
            continue

        try:
            if not filter_matches(entry, session_case, is_registered, ctx):
                continue
        except IfcError as e:
            log.error(f"iFC evaluation error in criterion {entry.index}: {e}")
            continue

        if entry.application_server is None:
            log.debug(f"iFC criterion {entry.index} matched but names no server")
            continue

        log.debug(f"Found (triggered) server {entry.application_server}")
        matched.append((entry.priority, entry.index, entry.application_server))

    matched.sort(key=lambda m: (m[0], m[1]))
    return [server for _, _, server in matched]


def calculate_application_servers(
    session_case: SessionCase,
    is_registered: bool,
    request: SIPRequest,
    ifc_xml: str,
) -> list[str]:
    """Determine the AS list for a request from a raw iFC document.

    A document that can't be parsed yields an empty list: the call then
    proceeds with no third-party application servers applied.
    """
    try:
        profile = parse_service_profile(ifc_xml)
    except IfcDocumentError as e:
        log.error(str(e))
        return []

    ctx = MatchContext(request=request, session_case=session_case, is_registered=is_registered)
    return select_application_servers(profile, session_case, is_registered, ctx)
