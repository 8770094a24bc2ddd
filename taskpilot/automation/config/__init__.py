"""
Configuration Module

Provides:
- Automation settings
- Settings loading
"""

from .settings import (
    AutomationSettings,
    load_settings,
    ENV_PREFIX
)

__all__ = [
    "AutomationSettings",
    "load_settings",
    "ENV_PREFIX"
]
