"""
Event Context

Provides:
- Missing-value sentinel
- Dotted-path field lookup
"""

from typing import Mapping, Any


class _Missing:
    """Marker for a context path that does not resolve"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def get_field_value(context: Mapping[str, Any], path: str) -> Any:
    """
    Get a value from the context using dot notation.

    "task.priority" descends into "task" then "priority". A missing key at
    any depth returns MISSING; an explicit None stored at the final key is
    returned as None.
    """
    if not isinstance(path, str) or not path:
        return MISSING

    value: Any = context
    for part in path.split("."):
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return MISSING

    return value
