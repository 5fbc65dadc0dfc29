"""
Modelo de plano do planguard: tipos imutáveis, sintaxe de placeholders,
loader JSON/YAML e hash canônico.
"""

from .errors import (
    InvalidPlanShapeError,
    PlanFormatError,
    PlanNotFoundError,
    UnsupportedPlanFormatError,
)
from .hashing import compute_plan_hash
from .loader import command_from_dict, command_to_dict, load_plan, plan_from_dict, plan_to_dict
from .types import (
    CURRENT_PLAN_VERSION,
    PLACEHOLDER_RE,
    Command,
    Plan,
    SessionTarget,
    WaitFor,
    find_placeholders,
    parse_duration,
    placeholder,
)

__all__ = [
    "InvalidPlanShapeError",
    "PlanFormatError",
    "PlanNotFoundError",
    "UnsupportedPlanFormatError",
    "compute_plan_hash",
    "command_from_dict",
    "command_to_dict",
    "load_plan",
    "plan_from_dict",
    "plan_to_dict",
    "CURRENT_PLAN_VERSION",
    "PLACEHOLDER_RE",
    "Command",
    "Plan",
    "SessionTarget",
    "WaitFor",
    "find_placeholders",
    "parse_duration",
    "placeholder",
]
