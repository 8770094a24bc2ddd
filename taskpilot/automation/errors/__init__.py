"""
Errors Module

Provides:
- Error taxonomy
- Automation exceptions
- Error log
"""

from .handler import (
    ErrorType,
    ErrorSeverity,
    ErrorDetails,
    AutomationError,
    ConfigurationError,
    ActionExecutionError,
    DocumentExistsError,
    DocumentNotFoundError,
    ErrorLog
)

__all__ = [
    "ErrorType",
    "ErrorSeverity",
    "ErrorDetails",
    "AutomationError",
    "ConfigurationError",
    "ActionExecutionError",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "ErrorLog"
]
