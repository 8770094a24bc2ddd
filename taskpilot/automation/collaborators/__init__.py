"""
Collaborators Module

Provides:
- Interfaces consumed by the automation engine
- In-memory implementations
"""

from .interfaces import (
    NotificationSink,
    DocumentStore,
    ItemRegistry
)
from .memory import (
    MemoryNotificationSink,
    LoggingNotificationSink,
    MemoryDocumentStore,
    MemoryItemRegistry
)

__all__ = [
    # Interfaces
    "NotificationSink",
    "DocumentStore",
    "ItemRegistry",
    # Implementations
    "MemoryNotificationSink",
    "LoggingNotificationSink",
    "MemoryDocumentStore",
    "MemoryItemRegistry"
]
