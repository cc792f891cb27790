"""Initial Filter Criteria: parsing and evaluation."""

from callrouting.ifc.evaluator import (
    calculate_application_servers,
    evaluate_trigger,
    filter_matches,
    select_application_servers,
)
from callrouting.ifc.handler import IfcHandler, served_user_from_msg, user_from_uri
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

__all__ = [
    "CriterionFault",
    "FilterCriterion",
    "IfcHandler",
    "MatchContext",
    "ProfilePartIndicator",
    "ServicePointTrigger",
    "ServiceProfile",
    "SessionCase",
    "TriggerPoint",
    "calculate_application_servers",
    "evaluate_trigger",
    "filter_matches",
    "parse_service_profile",
    "select_application_servers",
    "served_user_from_msg",
    "user_from_uri",
]
