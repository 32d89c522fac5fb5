from sqlmodel import SQLModel, Field
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional

from .timestamps import UTCDateTime, utcnow


class Classroom(SQLModel, table=True):
    """Instructional unit owned by a master mentor. Managed outside this service."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=200, index=True)
    description: Optional[str] = Field(default=None, max_length=1000)

    # Ownership
    owner_id: UUID = Field(foreign_key="actor.id", index=True)

    # Settings
    max_capacity: int = Field(default=50)
    is_active: bool = Field(default=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
