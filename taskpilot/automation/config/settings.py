"""
Automation Settings

Provides:
- Engine settings with defaults
- Loading from dict, environment and YAML/JSON files
- Settings validation
"""

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional, Any

import yaml

from ..errors import ConfigurationError

ENV_PREFIX = "TASKPILOT_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AutomationSettings:
    """Automation engine settings"""

    enable_automation: bool = True
    projects_folder: str = "Projects"
    automation_folder: Optional[str] = None  # Defaults to <projects_folder>/Automation
    daily_hour: int = 9
    daily_minute: int = 0
    action_timeout_seconds: float = 30.0
    notify_on_failure: bool = True
    error_log_size: int = 100
    log_level: str = "INFO"

    def __post_init__(self):
        self.validate()

    @property
    def rules_folder(self) -> str:
        """Folder scanned for externally defined rules"""
        return self.automation_folder or f"{self.projects_folder}/Automation"

    def validate(self) -> None:
        """Raise ConfigurationError on out-of-range values"""
        if not 0 <= self.daily_hour <= 23:
            raise ConfigurationError(f"daily_hour must be 0-23, got {self.daily_hour}")
        if not 0 <= self.daily_minute <= 59:
            raise ConfigurationError(f"daily_minute must be 0-59, got {self.daily_minute}")
        if self.action_timeout_seconds <= 0:
            raise ConfigurationError("action_timeout_seconds must be positive")
        if self.error_log_size < 1:
            raise ConfigurationError("error_log_size must be at least 1")
        if str(self.log_level).upper() not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutomationSettings":
        """Build settings from a mapping, ignoring unknown keys"""
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key not in known:
                continue
            try:
                kwargs[key] = _coerce(value, known[key].default)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e
        return cls(**kwargs)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Dict[str, str]] = None,
        prefix: str = ENV_PREFIX
    ) -> "AutomationSettings":
        """Build settings from TASKPILOT_* environment variables"""
        environ = os.environ if environ is None else environ
        data = {}
        for f in fields(cls):
            env_key = f"{prefix}{f.name.upper()}"
            if env_key in environ:
                data[f.name] = environ[env_key]
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {
            "enable_automation": self.enable_automation,
            "projects_folder": self.projects_folder,
            "automation_folder": self.rules_folder,
            "daily_hour": self.daily_hour,
            "daily_minute": self.daily_minute,
            "action_timeout_seconds": self.action_timeout_seconds,
            "notify_on_failure": self.notify_on_failure,
            "error_log_size": self.error_log_size,
            "log_level": self.log_level
        }


def _coerce(value: Any, default: Any) -> Any:
    """Coerce raw (often string) values to the type of the field default"""
    if isinstance(default, bool):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(value)
        return bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if value is None:
        return None
    return str(value)


def load_settings(path: str) -> AutomationSettings:
    """Load settings from a YAML or JSON file"""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e

    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse settings file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping")

    # Allow nesting under an "automation" key
    if isinstance(data.get("automation"), dict):
        data = data["automation"]

    return AutomationSettings.from_dict(data)
