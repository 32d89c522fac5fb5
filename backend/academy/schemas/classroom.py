from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ClassroomResponse(BaseModel):
    """Classroom summary for staff and membership listings."""

    id: UUID
    title: str
    description: Optional[str] = None
    owner_id: UUID
    max_capacity: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
