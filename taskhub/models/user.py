"""
User model (read-only, managed outside this service)
"""

from pydantic import BaseModel


class User(BaseModel):
    """Known user identity"""
    id: str
    username: str

    def to_ref(self) -> "UserRef":
        return UserRef(id=self.id, username=self.username)


class UserRef(BaseModel):
    """Resolved reference to a user, as shown on tasks"""
    id: str
    username: str
