"""Exception hierarchy for the call-routing core.

Faults in externally supplied data (iFC documents, ENUM rules, DNS
replies) are caught at the boundary of each primary operation and
turned into empty results. Only configuration faults escape to the
caller, at construction time.
"""


class RoutingError(Exception):
    """Base exception for all call-routing errors."""
    pass


# =============================================================================
# iFC Exceptions
# =============================================================================

class IfcError(RoutingError):
    """A single filter criterion could not be interpreted.

    Raised for missing mandatory values, out-of-range integers, bad
    regular expressions and unknown SPT types. Scoped to one criterion:
    the evaluator skips the criterion and carries on with the rest.
    """
    pass


class IfcDocumentError(IfcError):
    """The iFC document as a whole is unusable.

    Covers XML syntax errors and a missing ServiceProfile root.
    """
    pass


# =============================================================================
# ENUM Exceptions
# =============================================================================

class EnumConfigError(RoutingError):
    """ENUM backend misconfiguration (bad server address, unknown backend)."""
    pass


class RewriteRuleError(RoutingError):
    """Malformed NAPTR-style rewrite string.

    Either the delimited field count is wrong or the match expression
    does not compile.
    """
    pass
