"""
Local store implementations: in-memory, optionally backed by JSON files
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from taskhub.api.base_store import TaskStore, UserDirectory, AuditSink
from taskhub.config.constants import TASK_CLOSED_STATUS
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.models.action_log import ActionLog
from taskhub.utils.error_handler import (
    NotFoundError,
    VersionConflictError,
    DuplicateTitleError,
    TaskStoreError,
)
from taskhub.utils.logger import logger


class LocalTaskStore(TaskStore):
    """Task store kept in memory, persisted to a JSON file if configured"""

    def __init__(self, data_file: Optional[str] = None):
        """
        Initialize task store

        Args:
            data_file: Path to JSON data file (optional, memory only if None)

        Raises:
            TaskStoreError: Data file exists but cannot be read
        """
        self.data_file = Path(data_file) if data_file else None
        self.logger = logger
        self._tasks: Dict[str, Task] = {}
        self._lock = asyncio.Lock()
        self._load()

    def _load(self):
        """Load tasks from file; any unreadable record stops the store from starting"""
        if self.data_file is None or not self.data_file.exists():
            return
        try:
            with open(self.data_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            tasks: Dict[str, Task] = {}
            for item in raw:
                task = Task.model_validate(item)
                tasks[task.id] = task
        except (OSError, ValueError, TypeError) as e:
            self.logger.error(f"[TaskStore] Failed to load tasks from {self.data_file}: {e}")
            raise TaskStoreError(f"Cannot load tasks from {self.data_file}: {e}") from e

        self._tasks = tasks
        self.logger.info(f"[TaskStore] Loaded {len(self._tasks)} tasks from {self.data_file}")

    def _write_file(self, records: List[Dict[str, Any]]):
        """Replace the data file in one step so a failed write leaves the old file intact"""
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.data_file.with_name(self.data_file.name + ".tmp")
        with open(tmp_file, 'w', encoding='utf-8') as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        os.replace(tmp_file, self.data_file)

    async def _commit(self, tasks: Dict[str, Task]):
        """Write the new state to file, then make it current. Caller holds the lock."""
        if self.data_file is not None:
            records = [task.to_wire() for task in tasks.values()]
            try:
                await asyncio.to_thread(self._write_file, records)
            except OSError as e:
                self.logger.error(f"[TaskStore] Failed to save tasks to {self.data_file}: {e}")
                raise TaskStoreError(f"Failed to save tasks: {e}") from e
        self._tasks = tasks

    def _ensure_unique_title(self, title: str, exclude_id: Optional[str] = None):
        for task_id, task in self._tasks.items():
            if task_id != exclude_id and task.title == title:
                raise DuplicateTitleError(title)

    async def get(self, task_id: str) -> Optional[Task]:
        async with self._lock:
            task = self._tasks.get(task_id)
            return task.model_copy(deep=True) if task else None

    async def find_all(self) -> List[Task]:
        async with self._lock:
            return [task.model_copy(deep=True) for task in self._tasks.values()]

    async def insert(self, task: Task) -> Task:
        async with self._lock:
            if task.id in self._tasks:
                raise ValueError(f"Task id already exists: {task.id}")
            self._ensure_unique_title(task.title)
            tasks = dict(self._tasks)
            tasks[task.id] = task.model_copy(deep=True)
            await self._commit(tasks)
            self.logger.debug(f"[TaskStore] Inserted task {task.id} v{task.version}")
            return task.model_copy(deep=True)

    async def save(self, task: Task, expected_version: Optional[int] = None) -> Task:
        async with self._lock:
            stored = self._tasks.get(task.id)
            if stored is None:
                raise NotFoundError(task.id)

            if expected_version is not None and stored.version != expected_version:
                self.logger.info(
                    f"[TaskStore] Rejected write to {task.id}: "
                    f"stored v{stored.version}, expected v{expected_version}"
                )
                raise VersionConflictError(stored.model_copy(deep=True))

            self._ensure_unique_title(task.title, exclude_id=task.id)
            tasks = dict(self._tasks)
            tasks[task.id] = task.model_copy(deep=True)
            await self._commit(tasks)
            self.logger.debug(f"[TaskStore] Saved task {task.id} v{task.version}")
            return task.model_copy(deep=True)

    async def delete(self, task_id: str) -> bool:
        async with self._lock:
            if task_id not in self._tasks:
                return False
            tasks = dict(self._tasks)
            del tasks[task_id]
            await self._commit(tasks)
            self.logger.debug(f"[TaskStore] Deleted task {task_id}")
            return True

    async def count_open_assigned(self, user_id: str) -> int:
        async with self._lock:
            return sum(
                1
                for task in self._tasks.values()
                if task.assigned_user == user_id and task.status != TASK_CLOSED_STATUS
            )


class LocalUserDirectory(UserDirectory):
    """User directory seeded from a list or a JSON file of {id, username}"""

    def __init__(self, users: Optional[Iterable[User]] = None, data_file: Optional[str] = None):
        self.logger = logger
        self._users: Dict[str, User] = {user.id: user for user in users or []}
        if data_file:
            self._load(Path(data_file))

    def _load(self, path: Path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                for item in json.load(f):
                    user = User.model_validate(item)
                    self._users[user.id] = user
            self.logger.info(f"[UserDirectory] Loaded {len(self._users)} users from {path}")
        except FileNotFoundError:
            self.logger.warning(f"[UserDirectory] Users file not found: {path}")

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def list_users(self) -> List[User]:
        # Stable id order keeps smart-assign deterministic across retries
        return sorted(self._users.values(), key=lambda u: u.id)


class LocalAuditLog(AuditSink):
    """Audit log kept in memory, appended to a JSON-lines file if configured"""

    def __init__(self, data_file: Optional[str] = None):
        self.data_file = Path(data_file) if data_file else None
        self.logger = logger
        self._entries: List[ActionLog] = []
        self._load()

    def _load(self):
        if self.data_file is None or not self.data_file.exists():
            return
        # Append-only file: bad lines are skipped here and never rewritten
        with open(self.data_file, 'r', encoding='utf-8') as f:
            for number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    self._entries.append(ActionLog.model_validate_json(line))
                except ValueError as e:
                    self.logger.warning(f"[AuditLog] Skipping bad entry at line {number}: {e}")
        self.logger.info(f"[AuditLog] Loaded {len(self._entries)} entries from {self.data_file}")

    def _append_line(self, line: str):
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.data_file, 'a', encoding='utf-8') as f:
            f.write(line + "\n")

    async def append(self, entry: ActionLog) -> None:
        if self.data_file is not None:
            # Errors propagate; the caller decides they are non-fatal
            await asyncio.to_thread(self._append_line, entry.model_dump_json(by_alias=True))
        self._entries.append(entry)

    async def list_recent(self, limit: int = 50) -> List[ActionLog]:
        return list(reversed(self._entries[-limit:])) if limit > 0 else []
