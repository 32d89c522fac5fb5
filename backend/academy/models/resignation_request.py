from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional

from .request_status import RequestStatus, enum_column
from .timestamps import UTCDateTime, utcnow


class ResignationRequest(SQLModel, table=True):
    """A staff member's request to leave a classroom."""

    __tablename__ = "resignation_request"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mentor_id: UUID = Field(foreign_key="actor.id", index=True)
    classroom_id: UUID = Field(foreign_key="classroom.id", index=True)

    reason: str = Field(max_length=2000)

    # Decision
    status: RequestStatus = Field(
        default=RequestStatus.PENDING,
        sa_column=enum_column(RequestStatus, RequestStatus.PENDING),
    )
    master_notes: Optional[str] = Field(default=None, max_length=2000)
    reviewed_by: Optional[UUID] = Field(default=None, foreign_key="actor.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    __table_args__ = (
        Index(
            "uq_resignation_request_pending",
            "mentor_id",
            "classroom_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
