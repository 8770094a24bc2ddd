"""
TaskPilot Automation

Rule engine for the project manager:
- rules: rule model, conditions, templates, actions, registry, loader
- scheduler: daily trigger
- collaborators: notification, document and item interfaces
- errors: error taxonomy and error log
- config: engine settings
"""

__version__ = "1.0.0"

from .engine import (
    AutomationEngine,
    DispatchResult,
    RuleResult,
    RuleStatus
)
from .config import AutomationSettings, load_settings
from .errors import ErrorLog
from .logging_setup import setup_logging

__all__ = [
    "AutomationEngine",
    "DispatchResult",
    "RuleResult",
    "RuleStatus",
    "AutomationSettings",
    "load_settings",
    "ErrorLog",
    "setup_logging"
]
