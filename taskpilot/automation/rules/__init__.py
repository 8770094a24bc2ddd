"""
Rules Module

Provides:
- Rule, trigger, condition and action definitions
- Condition evaluation
- Template interpolation
- Action execution
- Rule registry and loading
"""

from .models import (
    Rule,
    Trigger,
    TriggerType,
    Condition,
    ConditionOperator,
    Action,
    ActionType,
    parse_trigger_type,
    parse_operator,
    parse_action_type
)
from .context import (
    MISSING,
    get_field_value
)
from .conditions import (
    evaluate_operator,
    evaluate_condition,
    evaluate_conditions
)
from .templates import (
    interpolate,
    format_value
)
from .actions import (
    ActionStatus,
    ActionResult,
    ActionSkipped,
    ActionExecutor
)
from .registry import RuleRegistry
from .defaults import get_default_rules
from .loader import (
    RuleDefinition,
    RuleLoadReport,
    parse_rule,
    parse_rules,
    load_rules_from_file,
    load_rules_from_directory
)

__all__ = [
    # Models
    "Rule",
    "Trigger",
    "TriggerType",
    "Condition",
    "ConditionOperator",
    "Action",
    "ActionType",
    "parse_trigger_type",
    "parse_operator",
    "parse_action_type",
    # Context
    "MISSING",
    "get_field_value",
    # Conditions
    "evaluate_operator",
    "evaluate_condition",
    "evaluate_conditions",
    # Templates
    "interpolate",
    "format_value",
    # Actions
    "ActionStatus",
    "ActionResult",
    "ActionSkipped",
    "ActionExecutor",
    # Registry
    "RuleRegistry",
    "get_default_rules",
    # Loader
    "RuleDefinition",
    "RuleLoadReport",
    "parse_rule",
    "parse_rules",
    "load_rules_from_file",
    "load_rules_from_directory"
]
