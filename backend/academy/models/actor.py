from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional
from enum import Enum

from .timestamps import UTCDateTime, utcnow


class ActorRole(str, Enum):
    """Platform roles assigned by the session provider."""

    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"


class Actor(SQLModel, table=True):
    """Participant record mirrored from the session provider.

    Only ``is_master`` is written by the workflow engine; every other field
    belongs to the session provider.
    """

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    role: ActorRole = Field(default=ActorRole.STUDENT)
    is_master: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    @property
    def display_fields(self) -> tuple:
        return (self.username, self.first_name, self.last_name, self.email)
