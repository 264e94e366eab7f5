"""
Task model
"""

from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict

from taskhub.config.constants import TASK_INITIAL_VERSION
from taskhub.models.user import UserRef


class TaskStatus(str, Enum):
    """Task workflow status"""
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskPriority(str, Enum):
    """Task priority"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Task(BaseModel):
    """Stored task record"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_user: Optional[str] = Field(None, alias="assignedUser")  # user id, resolved on read
    created_by: Optional[str] = Field(None, alias="createdBy")
    last_modified: datetime = Field(..., alias="lastModified")
    version: int = Field(TASK_INITIAL_VERSION, ge=1)

    def to_wire(self) -> dict:
        """Serialize for HTTP/websocket payloads"""
        return self.model_dump(mode="json", by_alias=True)


class TaskView(BaseModel):
    """Task with the assignee resolved to a display name"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    assigned_user: Optional[UserRef] = Field(None, alias="assignedUser")
    created_by: Optional[str] = Field(None, alias="createdBy")
    last_modified: datetime = Field(..., alias="lastModified")
    version: int

    @classmethod
    def from_task(cls, task: Task, assignee: Optional[UserRef] = None) -> "TaskView":
        data = task.model_dump(exclude={"assigned_user"})
        return cls(**data, assigned_user=assignee)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TaskCreate(BaseModel):
    """Task creation model"""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM


class TaskUpdate(BaseModel):
    """
    Task update model

    All editable fields are replaced as a whole; `version` is the
    version the client last saw.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    version: int
