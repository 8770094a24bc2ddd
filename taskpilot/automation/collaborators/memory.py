"""
In-Memory Collaborators

Simple implementations of the collaborator interfaces, for hosts without a
vault and for tests.
"""

import logging
import uuid
from typing import Dict, List, Any, Optional

from ..errors import DocumentExistsError, DocumentNotFoundError
from .interfaces import NotificationSink, DocumentStore, ItemRegistry

logger = logging.getLogger("Collaborators")


class MemoryNotificationSink(NotificationSink):
    """Keeps shown messages in a list"""

    def __init__(self):
        self.messages: List[str] = []

    def show(self, message: str) -> None:
        self.messages.append(message)


class LoggingNotificationSink(NotificationSink):
    """Writes messages to the log"""

    def show(self, message: str) -> None:
        logger.info(f"Notification: {message}")


class MemoryDocumentStore(DocumentStore):
    """Documents kept in a dict keyed by path"""

    def __init__(self, documents: Optional[Dict[str, str]] = None):
        self.documents: Dict[str, str] = dict(documents or {})

    def create(self, path: str, content: str) -> None:
        if path in self.documents:
            raise DocumentExistsError(
                f"Document already exists: {path}",
                context={"path": path}
            )
        self.documents[path] = content

    def modify(self, path: str, content: str) -> None:
        if path not in self.documents:
            raise DocumentNotFoundError(
                f"Document not found: {path}",
                context={"path": path}
            )
        self.documents[path] = content

    def read(self, path: str) -> str:
        if path not in self.documents:
            raise DocumentNotFoundError(
                f"Document not found: {path}",
                context={"path": path}
            )
        return self.documents[path]


class MemoryItemRegistry(ItemRegistry):
    """Tasks and projects kept in a dict keyed by ID"""

    def __init__(self):
        self.items: Dict[str, Dict[str, Any]] = {}
        self.updates: List[tuple] = []

    def create_item(self, fields: Dict[str, Any]) -> str:
        kind = fields.get("kind", "task")
        item_id = f"{kind}_{uuid.uuid4().hex[:8]}"
        self.items[item_id] = {"id": item_id, **fields}
        return item_id

    def update_item(self, item_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append((item_id, dict(fields)))
        self.items.setdefault(item_id, {"id": item_id}).update(fields)
