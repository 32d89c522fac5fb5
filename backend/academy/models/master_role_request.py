from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional

from .request_status import RequestStatus, enum_column
from .timestamps import UTCDateTime, utcnow


class MasterRoleRequest(SQLModel, table=True):
    """A mentor's application to become a master (classroom owner)."""

    __tablename__ = "master_role_request"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    mentor_id: UUID = Field(foreign_key="actor.id", index=True)

    # Justification
    reason: str = Field(max_length=4000)
    experience: str = Field(max_length=4000)
    planned_classrooms: str = Field(max_length=4000)
    qualifications: Optional[str] = Field(default=None, max_length=4000)

    # Decision
    status: RequestStatus = Field(
        default=RequestStatus.PENDING,
        sa_column=enum_column(RequestStatus, RequestStatus.PENDING),
    )
    admin_notes: Optional[str] = Field(default=None, max_length=2000)
    reviewed_by: Optional[UUID] = Field(default=None, foreign_key="actor.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    # At most one pending request per mentor
    __table_args__ = (
        Index(
            "uq_master_role_request_pending",
            "mentor_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
