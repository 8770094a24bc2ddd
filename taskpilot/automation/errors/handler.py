"""
Automation Errors

Provides:
- Error taxonomy (type and severity)
- Automation exceptions with user-facing details
- Bounded error log for diagnosis
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from datetime import datetime
from enum import Enum

logger = logging.getLogger("AutomationErrors")


class ErrorType(Enum):
    """Categories of errors"""
    FILE_OPERATION = "file_operation"
    CONFIGURATION = "configuration"
    AUTOMATION = "automation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


DEFAULT_USER_MESSAGES = {
    ErrorType.FILE_OPERATION: "There was a problem accessing the file. Please check permissions and try again.",
    ErrorType.CONFIGURATION: "An automation rule definition is invalid and was skipped.",
    ErrorType.AUTOMATION: "Automation rule failed to execute. Please check rule configuration.",
    ErrorType.UNKNOWN: "An unexpected error occurred. Please try again.",
}

DEFAULT_SUGGESTIONS = {
    ErrorType.FILE_OPERATION: [
        "Check file permissions",
        "Make sure the target path does not already exist",
    ],
    ErrorType.CONFIGURATION: [
        "Check the rule file syntax",
        "Verify trigger, operator and action names",
    ],
    ErrorType.AUTOMATION: [
        "Check automation rule configuration",
        "Verify trigger conditions",
        "Review automation logs",
    ],
    ErrorType.UNKNOWN: [
        "Check the logs for additional details",
    ],
}

_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorDetails:
    """Structured description of an error"""

    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    user_message: str = ""
    suggestions: List[str] = field(default_factory=list)
    recoverable: bool = True

    def to_dict(self) -> dict:
        return {
            "error_type": self.error_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "user_message": self.user_message,
            "suggestions": self.suggestions,
            "recoverable": self.recoverable
        }


class AutomationError(Exception):
    """Base exception for the automation engine"""

    default_type = ErrorType.UNKNOWN
    default_severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        error_type: Optional[ErrorType] = None,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        recoverable: bool = True
    ):
        super().__init__(message)
        error_type = error_type or self.default_type
        self.details = ErrorDetails(
            error_type=error_type,
            severity=severity or self.default_severity,
            message=message,
            context=context or {},
            user_message=user_message or DEFAULT_USER_MESSAGES[error_type],
            suggestions=list(suggestions or DEFAULT_SUGGESTIONS[error_type]),
            recoverable=recoverable
        )


class ConfigurationError(AutomationError):
    """Malformed rule definition or settings"""
    default_type = ErrorType.CONFIGURATION


class ActionExecutionError(AutomationError):
    """A collaborator call made by an action failed"""
    default_type = ErrorType.AUTOMATION


class DocumentExistsError(AutomationError):
    """Document store refused to create an existing path"""
    default_type = ErrorType.FILE_OPERATION
    default_severity = ErrorSeverity.LOW


class DocumentNotFoundError(AutomationError):
    """Document store has no document at the path"""
    default_type = ErrorType.FILE_OPERATION
    default_severity = ErrorSeverity.LOW


class ErrorLog:
    """
    Bounded in-memory record of engine errors.

    Passed explicitly to the components that report errors; every record is
    also written to the standard logger.
    """

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._entries: deque = deque(maxlen=max_size)

    def record(
        self,
        error: BaseException,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorDetails:
        """Record an error and return its details"""
        if isinstance(error, AutomationError):
            details = error.details
            if context:
                details.context = {**details.context, **context}
        else:
            details = ErrorDetails(
                error_type=ErrorType.UNKNOWN,
                severity=ErrorSeverity.MEDIUM,
                message=str(error) or type(error).__name__,
                context=context or {},
                user_message=DEFAULT_USER_MESSAGES[ErrorType.UNKNOWN],
                suggestions=list(DEFAULT_SUGGESTIONS[ErrorType.UNKNOWN])
            )

        self._entries.append(details)
        logger.log(
            _SEVERITY_LEVELS[details.severity],
            f"[{details.error_type.value}] {details.message} {details.context or ''}".rstrip()
        )
        return details

    def get_recent(self, limit: int = 10) -> List[ErrorDetails]:
        """Get the most recent errors, newest last"""
        if limit <= 0:
            return []
        return list(self._entries)[-limit:]

    def get_by_type(self, error_type: ErrorType) -> List[ErrorDetails]:
        """Get errors of one type"""
        return [e for e in self._entries if e.error_type == error_type]

    def clear(self) -> None:
        """Drop all recorded errors"""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def get_statistics(self) -> dict:
        """Get error statistics"""
        by_type: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for entry in self._entries:
            by_type[entry.error_type.value] = by_type.get(entry.error_type.value, 0) + 1
            by_severity[entry.severity.value] = by_severity.get(entry.severity.value, 0) + 1

        return {
            "total_errors": len(self._entries),
            "max_size": self.max_size,
            "by_type": by_type,
            "by_severity": by_severity
        }
