"""
Rule Conditions

Provides:
- Operator evaluation
- Condition evaluation against event context
- Short-circuit AND over a condition list
"""

import logging
from typing import Any, Dict, Iterable, Union

from .context import MISSING, get_field_value
from .models import Condition, ConditionOperator

logger = logging.getLogger("RuleConditions")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(left: Any, right: Any) -> bool:
    """Equality that also requires matching kinds ("1" != 1, True != 1, 1 == 1.0)"""
    if left is MISSING or right is MISSING:
        return False
    if _is_number(left) and _is_number(right):
        return left == right
    return type(left) is type(right) and left == right


def _is_empty(value: Any) -> bool:
    """Undefined, null, false, zero or "" count as empty; mappings and lists never do"""
    if value is MISSING or value is None or value is False:
        return True
    if _is_number(value):
        return value == 0 or value != value
    return isinstance(value, str) and value == ""


def evaluate_operator(
    field_value: Any,
    operator: Union[ConditionOperator, str],
    compare_value: Any
) -> bool:
    """Apply an operator; total over all inputs, unknown operators are false"""
    if operator == ConditionOperator.EQUALS:
        return _strict_equals(field_value, compare_value)
    elif operator == ConditionOperator.NOT_EQUALS:
        return not _strict_equals(field_value, compare_value)
    elif operator == ConditionOperator.CONTAINS:
        return (
            isinstance(field_value, str)
            and isinstance(compare_value, str)
            and compare_value in field_value
        )
    elif operator == ConditionOperator.GREATER_THAN:
        return _is_number(field_value) and _is_number(compare_value) and field_value > compare_value
    elif operator == ConditionOperator.LESS_THAN:
        return _is_number(field_value) and _is_number(compare_value) and field_value < compare_value
    elif operator == ConditionOperator.IS_EMPTY:
        return _is_empty(field_value)
    elif operator == ConditionOperator.IS_NOT_EMPTY:
        if field_value is MISSING or field_value is None:
            return False
        return not isinstance(field_value, str) or len(field_value) > 0

    return False


def evaluate_condition(condition: Condition, context: Dict[str, Any]) -> bool:
    """Evaluate a single condition against context"""
    field_value = get_field_value(context, condition.field)
    return evaluate_operator(field_value, condition.operator, condition.value)


def evaluate_conditions(conditions: Iterable[Condition], context: Dict[str, Any]) -> bool:
    """
    AND-combine conditions, stopping at the first false one.

    An empty list is true. An exception while evaluating a condition counts
    as that condition being false.
    """
    for condition in conditions:
        try:
            if not evaluate_condition(condition, context):
                return False
        except Exception as e:
            logger.debug(f"Condition on '{getattr(condition, 'field', '?')}' failed to evaluate: {e}")
            return False
    return True
