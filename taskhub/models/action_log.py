"""
Audit log entry model
"""

from uuid import uuid4
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from taskhub.utils.date_utils import get_current_datetime


class ActionLog(BaseModel):
    """Append-only record of one successful mutation"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    action: str
    user: str  # acting user id
    task: str  # affected task id
    timestamp: datetime = Field(default_factory=get_current_datetime)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
