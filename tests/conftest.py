"""
Pytest configuration and fixtures
"""

import pytest
from unittest.mock import MagicMock
from taskhub.api.local_store import LocalTaskStore, LocalUserDirectory, LocalAuditLog
from taskhub.models.user import User
from taskhub.services.broadcaster import Broadcaster
from taskhub.services.task_manager import TaskManager


@pytest.fixture
def users():
    """Three known users, already in id order"""
    return [
        User(id="u1", username="alice"),
        User(id="u2", username="bob"),
        User(id="u3", username="carol"),
    ]


@pytest.fixture
def user_directory(users):
    return LocalUserDirectory(users=users)


@pytest.fixture
def task_store():
    """In-memory task store"""
    return LocalTaskStore()


@pytest.fixture
def audit_log():
    return LocalAuditLog()


@pytest.fixture
def mock_broadcaster():
    """Broadcaster that records published events instead of sending them"""
    broadcaster = MagicMock(spec=Broadcaster)
    broadcaster.publish = MagicMock()
    return broadcaster


@pytest.fixture
def task_manager(task_store, user_directory, audit_log, mock_broadcaster):
    """Task manager over in-memory stores"""
    return TaskManager(task_store, user_directory, audit_log, mock_broadcaster)
