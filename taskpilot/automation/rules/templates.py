"""
Template Interpolation

Replaces {{path}} tokens with values looked up in the event context.
"""

import re
from typing import Any, Dict

from .context import MISSING, get_field_value

TOKEN_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


def format_value(value: Any) -> str:
    """String form of a context value as shown to users"""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def interpolate(template: Any, context: Dict[str, Any]) -> str:
    """
    Substitute every {{path}} token in template.

    Whitespace inside the braces is ignored. Tokens whose path does not
    resolve are left verbatim so the user sees the placeholder.
    """
    if template is None:
        return ""
    if not isinstance(template, str):
        template = format_value(template)

    def _substitute(match: "re.Match") -> str:
        value = get_field_value(context, match.group(1).strip())
        if value is MISSING:
            return match.group(0)
        return format_value(value)

    return TOKEN_PATTERN.sub(_substitute, template)
