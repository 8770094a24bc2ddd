"""
Collaborator Interfaces

Provides:
- Notification sink
- Document store
- Item registry (tasks and projects)

Implementations may define these methods as plain or async functions; the
action executor awaits whatever is awaitable.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional


class NotificationSink(ABC):
    """Shows short messages to the user"""

    @abstractmethod
    def show(self, message: str) -> None:
        """Display a message; fire-and-forget"""
        pass


class DocumentStore(ABC):
    """Key-value annotated document store (markdown files)"""

    @abstractmethod
    def create(self, path: str, content: str) -> None:
        """Create a document, raising DocumentExistsError if the path is taken"""
        pass

    @abstractmethod
    def modify(self, path: str, content: str) -> None:
        """Replace a document, raising DocumentNotFoundError if absent"""
        pass

    @abstractmethod
    def read(self, path: str) -> str:
        """Read a document, raising DocumentNotFoundError if absent"""
        pass


class ItemRegistry(ABC):
    """Owns task/project storage and ID generation"""

    @abstractmethod
    def create_item(self, fields: Dict[str, Any]) -> Optional[str]:
        """Create an item, returning its ID"""
        pass

    @abstractmethod
    def update_item(self, item_id: str, fields: Dict[str, Any]) -> None:
        """Update fields of an existing item"""
        pass
