"""
Response models for the HTTP surface
"""

from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    error_code: Optional[str] = None
    error: Optional[str] = None
    details: Optional[dict] = None


class ConflictResponse(BaseModel):
    """Version conflict: the stored task and the rejected client payload"""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Conflict detected"
    current_version: Dict[str, Any] = Field(..., alias="currentVersion")
    client_version: Dict[str, Any] = Field(..., alias="clientVersion")


class DeleteResponse(BaseModel):
    """Delete confirmation"""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Task deleted"
    task_id: str = Field(..., alias="taskId")
