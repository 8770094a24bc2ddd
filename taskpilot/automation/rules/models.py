"""
Rule Models

Provides:
- Trigger, condition and action types
- Rule definitions
- Dictionary conversion
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, Any, Union
from enum import Enum


class TriggerType(str, Enum):
    """Events that make a rule eligible for evaluation"""
    ITEM_CREATED = "item_created"
    ITEM_COMPLETED = "item_completed"
    ITEM_OVERDUE = "item_overdue"
    PROJECT_STARTED = "project_started"
    MILESTONE_REACHED = "milestone_reached"
    DAILY_SCHEDULE = "daily_schedule"


class ConditionOperator(str, Enum):
    """Condition operators"""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


class ActionType(str, Enum):
    """Types of actions"""
    SEND_NOTIFICATION = "send_notification"
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"
    SEND_EMAIL = "send_email"  # Reserved, logged only
    CREATE_NOTE = "create_note"
    UPDATE_STATUS = "update_status"


# Names used by earlier task-only rule files
TRIGGER_ALIASES = {
    "task_created": TriggerType.ITEM_CREATED,
    "task_completed": TriggerType.ITEM_COMPLETED,
    "task_overdue": TriggerType.ITEM_OVERDUE,
}

ACTION_ALIASES = {
    "create_task": ActionType.CREATE_ITEM,
    "update_task": ActionType.UPDATE_ITEM,
}


def parse_trigger_type(value: Union[str, TriggerType]) -> TriggerType:
    """Resolve a trigger type name, raising ValueError when unknown"""
    if isinstance(value, TriggerType):
        return value
    name = str(value).strip().lower()
    if name in TRIGGER_ALIASES:
        return TRIGGER_ALIASES[name]
    return TriggerType(name)


def parse_operator(value: Union[str, ConditionOperator]) -> Union[ConditionOperator, str]:
    """Resolve an operator; unknown names are kept as raw strings"""
    if isinstance(value, ConditionOperator):
        return value
    try:
        return ConditionOperator(str(value).strip().lower())
    except ValueError:
        return str(value)


def parse_action_type(value: Union[str, ActionType]) -> Union[ActionType, str]:
    """Resolve an action type; unknown names are kept as raw strings"""
    if isinstance(value, ActionType):
        return value
    name = str(value).strip().lower()
    if name in ACTION_ALIASES:
        return ACTION_ALIASES[name]
    try:
        return ActionType(name)
    except ValueError:
        return str(value)


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class Trigger:
    """Rule trigger"""

    type: TriggerType
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "parameters": dict(self.parameters)
        }


@dataclass(frozen=True)
class Condition:
    """Predicate over a dotted-path field of the event context"""

    field: str
    operator: Union[ConditionOperator, str]
    value: Any = None

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "operator": _enum_value(self.operator),
            "value": self.value
        }


@dataclass(frozen=True)
class Action:
    """Typed side-effecting step of a rule"""

    type: Union[ActionType, str]
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": _enum_value(self.type),
            "parameters": dict(self.parameters)
        }


@dataclass(frozen=True)
class Rule:
    """
    Automation rule definition.

    Rules are immutable; the registry replaces a rule with a copy when its
    enabled flag changes, and structural edits are a remove followed by an add.
    """

    id: str
    name: str
    trigger: Trigger
    description: str = ""
    conditions: Tuple[Condition, ...] = ()
    actions: Tuple[Action, ...] = ()
    enabled: bool = True

    def __post_init__(self):
        # Accept lists from callers
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "actions", tuple(self.actions))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "trigger": self.trigger.to_dict(),
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": [a.to_dict() for a in self.actions],
            "enabled": self.enabled
        }
