"""
Base store interfaces consumed by the mutation core
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.models.action_log import ActionLog


class TaskStore(ABC):
    """
    Durable task record store, keyed by id.

    Implementations must give each call a consistent snapshot and must
    make `save(..., expected_version=...)` an atomic compare-and-swap.
    """

    @abstractmethod
    async def get(self, task_id: str) -> Optional[Task]:
        """Return the task or None if it does not exist"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Task]:
        """Return all tasks in insertion order"""
        pass

    @abstractmethod
    async def insert(self, task: Task) -> Task:
        """
        Insert a new task

        Raises:
            DuplicateTitleError: If another task has the same title
        """
        pass

    @abstractmethod
    async def save(self, task: Task, expected_version: Optional[int] = None) -> Task:
        """
        Overwrite the record at task.id

        Args:
            task: New full state of the task
            expected_version: If given, write only if the stored version equals it

        Raises:
            NotFoundError: If the record no longer exists
            VersionConflictError: If expected_version does not match
            DuplicateTitleError: If the title collides with another task
        """
        pass

    @abstractmethod
    async def delete(self, task_id: str) -> bool:
        """Delete the task, returns False if it did not exist"""
        pass

    @abstractmethod
    async def count_open_assigned(self, user_id: str) -> int:
        """Count tasks assigned to user_id whose status is not Done"""
        pass


class UserDirectory(ABC):
    """Read-only view of user identities"""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def list_users(self) -> List[User]:
        """All users, sorted by id"""
        pass


class AuditSink(ABC):
    """Append-only audit log"""

    @abstractmethod
    async def append(self, entry: ActionLog) -> None:
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 50) -> List[ActionLog]:
        """Most recent entries first"""
        pass
