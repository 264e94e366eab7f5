"""
Error handling utilities
"""

from typing import Any, Dict, Optional, TYPE_CHECKING
from taskhub.models.response import ErrorResponse
from taskhub.utils.logger import logger

if TYPE_CHECKING:
    from taskhub.models.task import Task


class TaskHubError(Exception):
    """Base exception for service errors"""
    pass


class NotFoundError(TaskHubError):
    """Referenced task does not exist"""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class VersionConflictError(TaskHubError):
    """Client version does not match the stored version"""

    def __init__(self, current: "Task", client_payload: Optional[Dict[str, Any]] = None):
        self.current = current
        self.client_payload = client_payload or {}
        super().__init__(
            f"Version conflict on task {current.id}: "
            f"stored={current.version}, client={self.client_payload.get('version')}"
        )


class DuplicateTitleError(TaskHubError):
    """Task title already used by another task"""

    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Task title already exists: '{title}'")


class IdentityResolutionError(TaskHubError):
    """Acting user could not be resolved"""

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id
        super().__init__("User not found")


class InvalidTaskError(TaskHubError):
    """Task payload is rejected by a business rule (maps to 400)"""
    pass


class TaskStoreError(TaskHubError):
    """Task file could not be read or written"""
    pass


class AuditWriteError(TaskHubError):
    """Audit entry could not be written (never fatal)"""
    pass


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return structured error body

    Args:
        error: Exception to handle

    Returns:
        ErrorResponse for the HTTP layer
    """
    if isinstance(error, NotFoundError):
        return ErrorResponse(message="Task not found", error_code="NOT_FOUND")

    if isinstance(error, DuplicateTitleError):
        return ErrorResponse(
            message=str(error),
            error_code="DUPLICATE_TITLE",
        )

    if isinstance(error, VersionConflictError):
        return ErrorResponse(message="Conflict detected", error_code="VERSION_CONFLICT")

    if isinstance(error, InvalidTaskError):
        return ErrorResponse(message=str(error), error_code="INVALID_TASK")

    # Unexpected errors and identity failures: generic message, no internals beyond str(e)
    logger.error(f"Error occurred: {error}", exc_info=error)
    return ErrorResponse(
        message="Server error",
        error=str(error),
    )
