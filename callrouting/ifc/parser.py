"""iFC XML document parser.

Two stages: lxml builds a loosely validated element tree, then a strict
extraction pass turns each <InitialFilterCriteria> into either a
FilterCriterion or a CriterionFault. A bad criterion never stops its
siblings from being extracted; only an unparseable document or a
missing <ServiceProfile> root raises.

Element names follow CxData_Type_Rel11.xsd (3GPP TS 29.228). Namespace
prefixes are ignored.
"""

import logging
import re
from typing import Iterator, Union

from lxml import etree

from callrouting.exceptions import IfcDocumentError, IfcError
from callrouting.ifc.models import (
    Condition,
    CriterionFault,
    FilterCriterion,
    MethodCondition,
    ProfileEntry,
    ProfilePartIndicator,
    RequestUriCondition,
    ServicePointTrigger,
    ServiceProfile,
    SessionCaseCondition,
    SessionDescriptionCondition,
    SipHeaderCondition,
    TriggerPoint,
)

log = logging.getLogger(__name__)

# xs:int restricted to be non-negative
INT32_MAX = 2**31 - 1

# No DTDs, entities or network access for subscriber-supplied XML
_XML_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
    load_dtd=False,
    huge_tree=False,
)


# =============================================================================
# Element helpers
# =============================================================================

def _local_name(node) -> str:
    if not isinstance(node.tag, str):
        return ""
    return etree.QName(node).localname


def _children(node, name: str) -> Iterator:
    for child in node:
        if _local_name(child) == name:
            yield child


def _child(node, name: str):
    return next(_children(node, name), None)


def _text(node) -> str:
    return (node.text or "").strip()


def parse_integer(node, description: str, min_value: int, max_value: int) -> int:
    """Parse an element's text as a bounded decimal integer.

    Raises:
        IfcError: If the node is missing, not an integer, or out of range
    """
    if node is None:
        raise IfcError(f"Missing mandatory value for {description}")

    value = _text(node)
    if not re.fullmatch(r"[+-]?\d+", value):
        raise IfcError(f"Can't parse {description} as integer: {value!r}")

    n = int(value)
    if n < min_value or n > max_value:
        raise IfcError(
            f"{description} out of allowable range {min_value}..{max_value}: {n}"
        )
    return n


def parse_bool(node, description: str) -> bool:
    """Parse an xs:boolean element ("true"/"1" are true, anything else false).

    Raises:
        IfcError: If the node is missing
    """
    if node is None:
        raise IfcError(f"Missing mandatory value for {description}")
    return _text(node) in ("true", "1")


def _compile(value: str, description: str, flags: int = 0) -> re.Pattern:
    try:
        return re.compile(value, flags)
    except re.error as e:
        raise IfcError(f"Invalid regular expression in {description}: {value!r} ({e})")


# =============================================================================
# Strict extraction
# =============================================================================

def _parse_condition(spt) -> Condition:
    """Extract the predicate body of an <SPT>."""
    node = _child(spt, "RequestURI")
    if node is not None:
        return RequestUriCondition(_compile(_text(node), "RequestURI"))

    node = _child(spt, "Method")
    if node is not None:
        method = _text(node)
        if not method:
            raise IfcError("Empty Method in SPT")
        return MethodCondition(method)

    node = _child(spt, "SIPHeader")
    if node is not None:
        header = _child(node, "Header")
        if header is None or not _text(header):
            raise IfcError("Missing mandatory value for SIPHeader/Header")
        content = _child(node, "Content")
        return SipHeaderCondition(
            header=_compile(_text(header), "SIPHeader/Header", re.IGNORECASE),
            content=_compile(_text(content), "SIPHeader/Content") if content is not None else None,
        )

    node = _child(spt, "SessionCase")
    if node is not None:
        return SessionCaseCondition(parse_integer(node, "SessionCase", 0, 4))

    node = _child(spt, "SessionDescription")
    if node is not None:
        line = _child(node, "Line")
        if line is None or not _text(line):
            raise IfcError("Missing mandatory value for SessionDescription/Line")
        content = _child(node, "Content")
        return SessionDescriptionCondition(
            line=_compile(_text(line), "SessionDescription/Line"),
            content=(
                _compile(_text(content), "SessionDescription/Content")
                if content is not None else None
            ),
        )

    kinds = [_local_name(c) for c in spt if _local_name(c) not in ("ConditionNegated", "Group")]
    raise IfcError(f"Unimplemented SPT type: {kinds or 'none'}")


def parse_spt(spt) -> ServicePointTrigger:
    """Extract one <SPT> element.

    Raises:
        IfcError: If the SPT is malformed
    """
    negated_node = _child(spt, "ConditionNegated")
    negated = negated_node is not None and parse_bool(negated_node, "ConditionNegated")

    groups = tuple(
        parse_integer(g, "Group ID", 0, INT32_MAX) for g in _children(spt, "Group")
    )

    return ServicePointTrigger(
        condition=_parse_condition(spt),
        negated=negated,
        groups=groups,
    )


def parse_trigger_point(node) -> TriggerPoint:
    """Extract a <TriggerPoint> element.

    Raises:
        IfcError: If ConditionTypeCNF is missing or any SPT is malformed
    """
    cnf = parse_bool(_child(node, "ConditionTypeCNF"), "ConditionTypeCNF")
    spts = tuple(parse_spt(spt) for spt in _children(node, "SPT"))
    return TriggerPoint(combine_as_cnf=cnf, spts=spts)


def parse_criterion(node, index: int) -> FilterCriterion:
    """Extract one <InitialFilterCriteria> element.

    Raises:
        IfcError: If any part of the criterion is malformed
    """
    priority_node = _child(node, "Priority")
    priority = 0
    if priority_node is not None:
        priority = parse_integer(priority_node, "iFC priority", 0, INT32_MAX)

    ppi = None
    ppi_node = _child(node, "ProfilePartIndicator")
    if ppi_node is not None:
        ppi = ProfilePartIndicator(parse_integer(ppi_node, "ProfilePartIndicator", 0, 1))

    trigger = None
    trigger_node = _child(node, "TriggerPoint")
    if trigger_node is not None:
        trigger = parse_trigger_point(trigger_node)

    server_name = None
    as_node = _child(node, "ApplicationServer")
    if as_node is not None:
        name_node = _child(as_node, "ServerName")
        if name_node is not None and _text(name_node):
            server_name = _text(name_node)

    return FilterCriterion(
        index=index,
        priority=priority,
        profile_part_indicator=ppi,
        trigger=trigger,
        application_server=server_name,
    )


def parse_service_profile(ifc_xml: Union[str, bytes]) -> ServiceProfile:
    """Parse an iFC document into a ServiceProfile.

    Args:
        ifc_xml: The document as returned by the subscriber-data connector

    Returns:
        ServiceProfile whose entries mirror the document's criteria, with
        malformed criteria represented as CriterionFault values

    Raises:
        IfcDocumentError: If the XML is unparseable or has no ServiceProfile root
    """
    if isinstance(ifc_xml, str):
        ifc_xml = ifc_xml.encode("utf-8")

    try:
        root = etree.fromstring(ifc_xml, _XML_PARSER)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise IfcDocumentError(f"iFCs parse error: {e}")

    if root is None or _local_name(root) != "ServiceProfile":
        raise IfcDocumentError("Missing ServiceProfile element")

    entries: list[ProfileEntry] = []
    for index, node in enumerate(_children(root, "InitialFilterCriteria")):
        try:
            entries.append(parse_criterion(node, index))
        except IfcError as e:
            entries.append(CriterionFault(index=index, reason=str(e)))

    return ServiceProfile(entries=tuple(entries))
