"""iFC XML documents for testing.

``service_profile`` wraps criteria in a ServiceProfile root; ``ifc``
builds one InitialFilterCriteria element. Both produce plain strings
so individual tests can mangle them.
"""

from typing import Optional


def spt(body: str, negated: Optional[bool] = None, groups: tuple[int, ...] = (0,)) -> str:
    """Build an <SPT> element around a predicate body."""
    parts = []
    if negated is not None:
        parts.append(f"<ConditionNegated>{'1' if negated else '0'}</ConditionNegated>")
    parts.extend(f"<Group>{g}</Group>" for g in groups)
    parts.append(body)
    return "<SPT>" + "".join(parts) + "</SPT>"


def trigger(cnf: bool, *spts: str) -> str:
    return (
        "<TriggerPoint>"
        f"<ConditionTypeCNF>{'1' if cnf else '0'}</ConditionTypeCNF>"
        + "".join(spts)
        + "</TriggerPoint>"
    )


def ifc(
    server: Optional[str],
    priority: Optional[str] = None,
    trigger_xml: str = "",
    profile_part: Optional[str] = None,
) -> str:
    """Build an <InitialFilterCriteria> element."""
    parts = []
    if priority is not None:
        parts.append(f"<Priority>{priority}</Priority>")
    if trigger_xml:
        parts.append(trigger_xml)
    if server is not None:
        parts.append(
            "<ApplicationServer>"
            f"<ServerName>{server}</ServerName>"
            "<DefaultHandling>0</DefaultHandling>"
            "</ApplicationServer>"
        )
    if profile_part is not None:
        parts.append(f"<ProfilePartIndicator>{profile_part}</ProfilePartIndicator>")
    return "<InitialFilterCriteria>" + "".join(parts) + "</InitialFilterCriteria>"


def service_profile(*criteria: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<ServiceProfile>"
        "<PublicIdentity><Identity>sip:6505551234@homedomain</Identity></PublicIdentity>"
        + "".join(criteria)
        + "</ServiceProfile>"
    )


METHOD_INVITE = "<Method>INVITE</Method>"
METHOD_MESSAGE = "<Method>MESSAGE</Method>"


# Two servers for INVITEs, one for MESSAGE, in priority order 1 / 2 / 3
BASIC_PROFILE = service_profile(
    ifc("sip:as2.homedomain:5058", "2", trigger(False, spt(METHOD_INVITE))),
    ifc("sip:as1.homedomain:5058", "1", trigger(False, spt(METHOD_INVITE))),
    ifc("sip:msg.homedomain:5058", "3", trigger(False, spt(METHOD_MESSAGE))),
)
