"""
Task mutation service
"""

from uuid import uuid4
from typing import Any, Dict, List, Optional
from taskhub.api.base_store import TaskStore, UserDirectory, AuditSink
from taskhub.config.constants import EVENT_ACTION_LOGGED, TASK_INITIAL_VERSION
from taskhub.models.action_log import ActionLog
from taskhub.models.task import Task, TaskCreate, TaskUpdate, TaskView
from taskhub.models.user import User, UserRef
from taskhub.services.assignment_balancer import AssignmentBalancer
from taskhub.services.broadcaster import Broadcaster
from taskhub.services.version_guard import VersionGuard, VersionCheck
from taskhub.utils.date_utils import get_current_datetime
from taskhub.utils.error_handler import (
    AuditWriteError,
    IdentityResolutionError,
    InvalidTaskError,
    NotFoundError,
    VersionConflictError,
)
from taskhub.utils.formatters import (
    format_task_created,
    format_task_updated,
    format_task_deleted,
    format_task_assigned,
)
from taskhub.utils.logger import logger


class TaskManager:
    """
    Orchestrates every task mutation:
    resolve actor -> validate -> persist -> audit -> broadcast.

    Validation errors (NotFoundError, VersionConflictError, DuplicateTitleError)
    and identity failures are raised before anything is persisted. Audit
    failures are logged and never undo a committed mutation.
    """

    def __init__(
        self,
        store: TaskStore,
        users: UserDirectory,
        audit: AuditSink,
        broadcaster: Broadcaster,
    ):
        """
        Initialize task manager

        Args:
            store: Task record store
            users: Read-only user directory
            audit: Audit log sink
            broadcaster: Realtime fan-out channel
        """
        self.store = store
        self.users = users
        self.audit = audit
        self.broadcaster = broadcaster
        self.guard = VersionGuard()
        self.balancer = AssignmentBalancer()
        self.logger = logger

    async def _resolve_actor(self, actor_id: Optional[str]) -> User:
        user = await self.users.get_user(actor_id) if actor_id else None
        if user is None:
            self.logger.error(f"[TaskManager] User not found for ID: {actor_id}")
            raise IdentityResolutionError(actor_id)
        return user

    async def _resolve_assignee(self, user_id: Optional[str]) -> Optional[UserRef]:
        if not user_id:
            return None
        user = await self.users.get_user(user_id)
        return user.to_ref() if user else None

    async def _get_existing(self, task_id: str) -> Task:
        task = await self.store.get(task_id)
        if task is None:
            self.logger.info(f"[TaskManager] Task not found for ID: {task_id}")
            raise NotFoundError(task_id)
        return task

    async def to_view(self, task: Task) -> TaskView:
        return TaskView.from_task(task, await self._resolve_assignee(task.assigned_user))

    async def _record(
        self,
        actor: User,
        task_id: str,
        action: str,
        snapshot: Optional[Dict[str, Any]],
        deleted: bool = False,
    ) -> ActionLog:
        """Write the audit entry (best-effort) and announce the change"""
        entry = ActionLog(action=action, user=actor.id, task=task_id)

        try:
            await self.audit.append(entry)
        except Exception as e:
            error = AuditWriteError(f"Failed to write audit entry for task {task_id}: {e}")
            self.logger.error(f"[TaskManager] {error}", exc_info=e)

        payload = entry.to_wire()
        payload.update({"taskId": task_id, "taskSnapshot": snapshot, "deleted": deleted})
        self.broadcaster.publish(EVENT_ACTION_LOGGED, payload)
        return entry

    async def list_tasks(self) -> List[TaskView]:
        """All tasks with assignees resolved to display names"""
        tasks = await self.store.find_all()
        refs: Dict[str, Optional[UserRef]] = {}
        views = []
        for task in tasks:
            if task.assigned_user and task.assigned_user not in refs:
                refs[task.assigned_user] = await self._resolve_assignee(task.assigned_user)
            views.append(TaskView.from_task(task, refs.get(task.assigned_user or "")))
        return views

    async def create_task(self, actor_id: Optional[str], payload: TaskCreate) -> Task:
        """
        Create a new task at version 1

        Raises:
            IdentityResolutionError: Actor unknown
            InvalidTaskError: Title is blank
            DuplicateTitleError: Title already taken
        """
        actor = await self._resolve_actor(actor_id)

        title = payload.title.strip()
        if not title:
            raise InvalidTaskError("Task title is required")

        task = Task(
            id=uuid4().hex,
            title=title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
            created_by=actor.id,
            last_modified=get_current_datetime(),
            version=TASK_INITIAL_VERSION,
        )
        created = await self.store.insert(task)
        self.logger.info(f"[TaskManager] Created task {created.id} '{created.title}' by {actor.username}")

        view = await self.to_view(created)
        await self._record(actor, created.id, format_task_created(created.title, actor.username), view.to_wire())
        return created

    async def update_task(self, actor_id: Optional[str], task_id: str, payload: TaskUpdate) -> Task:
        """
        Replace editable fields if the client's version is current

        Raises:
            IdentityResolutionError: Actor unknown
            NotFoundError: Task does not exist
            VersionConflictError: Client version is stale
            DuplicateTitleError: New title already taken
        """
        actor = await self._resolve_actor(actor_id)
        task = await self._get_existing(task_id)
        client_payload = payload.model_dump(mode="json", by_alias=True)

        if self.guard.check(task.version, payload.version) == VersionCheck.CONFLICT:
            self.logger.info(
                f"[TaskManager] Conflict on {task_id}: stored v{task.version}, client v{payload.version}"
            )
            raise VersionConflictError(task, client_payload)

        title = payload.title.strip()
        if not title:
            raise InvalidTaskError("Task title is required")

        updated = task.model_copy(update={
            "title": title,
            "description": payload.description,
            "priority": payload.priority,
            "status": payload.status,
            "version": self.guard.next_version(task.version),
            "last_modified": get_current_datetime(),
        })

        try:
            # Compare-and-swap closes the window between get and save
            saved = await self.store.save(updated, expected_version=task.version)
        except VersionConflictError as e:
            self.logger.info(f"[TaskManager] Lost race on {task_id}: stored v{e.current.version}")
            raise VersionConflictError(e.current, client_payload) from e

        self.logger.info(f"[TaskManager] Updated task {task_id} to v{saved.version} by {actor.username}")

        view = await self.to_view(saved)
        await self._record(actor, saved.id, format_task_updated(saved.title, actor.username), view.to_wire())
        return saved

    async def delete_task(self, actor_id: Optional[str], task_id: str) -> Task:
        """
        Delete a task, regardless of its version

        Returns:
            The task as it was before deletion
        """
        actor = await self._resolve_actor(actor_id)
        task = await self._get_existing(task_id)

        if not await self.store.delete(task_id):
            # Deleted by someone else between get and delete
            raise NotFoundError(task_id)

        self.logger.info(f"[TaskManager] Deleted task {task_id} by {actor.username}")
        await self._record(actor, task_id, format_task_deleted(task.title, actor.username), None, deleted=True)
        return task

    async def reassign_task(self, actor_id: Optional[str], task_id: str) -> TaskView:
        """
        Smart-assign a task to the user with the fewest open tasks

        Leaves the task unassigned when there are no users. No version
        check: the record read here is written back as-is plus the new
        assignee.
        """
        actor = await self._resolve_actor(actor_id)
        task = await self._get_existing(task_id)

        users = await self.users.list_users()
        assignee = await self.balancer.select_assignee_async(
            users,
            lambda user: self.store.count_open_assigned(user.id),
        )

        updated = task.model_copy(update={
            "assigned_user": assignee.id if assignee else None,
            "version": self.guard.next_version(task.version),
            "last_modified": get_current_datetime(),
        })
        saved = await self.store.save(updated)

        assignee_name = assignee.username if assignee else None
        self.logger.info(
            f"[TaskManager] Smart assigned task {task_id} to {assignee_name or 'nobody'} by {actor.username}"
        )

        view = TaskView.from_task(saved, assignee.to_ref() if assignee else None)
        await self._record(
            actor,
            task_id,
            format_task_assigned(saved.title, assignee_name, actor.username),
            view.to_wire(),
        )
        return view
