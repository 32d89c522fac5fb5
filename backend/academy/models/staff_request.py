from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional

from .request_status import RequestStatus, enum_column
from .timestamps import UTCDateTime, utcnow


class StaffRequest(SQLModel, table=True):
    """A mentor's request to join a classroom's teaching staff."""

    __tablename__ = "staff_request"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mentor_id: UUID = Field(foreign_key="actor.id", index=True)
    classroom_id: UUID = Field(foreign_key="classroom.id", index=True)

    message: str = Field(max_length=2000)

    # Decision
    status: RequestStatus = Field(
        default=RequestStatus.PENDING,
        sa_column=enum_column(RequestStatus, RequestStatus.PENDING),
    )
    admin_notes: Optional[str] = Field(default=None, max_length=2000)
    reviewed_by: Optional[UUID] = Field(default=None, foreign_key="actor.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    __table_args__ = (
        Index(
            "uq_staff_request_pending",
            "mentor_id",
            "classroom_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
