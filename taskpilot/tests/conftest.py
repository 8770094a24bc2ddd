"""
Pytest configuration file

Adds the project root to the Python path so tests can import modules,
and provides shared engine fixtures.
"""
import sys
import os

import pytest

# Add the project root to the path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from automation.collaborators import (  # noqa: E402
    MemoryNotificationSink,
    MemoryDocumentStore,
    MemoryItemRegistry
)
from automation.errors import ErrorLog  # noqa: E402


@pytest.fixture
def notifications():
    return MemoryNotificationSink()


@pytest.fixture
def documents():
    return MemoryDocumentStore()


@pytest.fixture
def items():
    return MemoryItemRegistry()


@pytest.fixture
def error_log():
    return ErrorLog()
