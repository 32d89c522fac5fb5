from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from uuid import UUID, uuid4
from datetime import datetime
from typing import Optional
from enum import Enum

from .request_status import enum_column
from .timestamps import UTCDateTime, utcnow


class MembershipRole(str, Enum):
    """Membership roles within a classroom."""

    STUDENT = "student"
    STAFF = "staff"


class MembershipStatus(str, Enum):
    """Membership status."""

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"


class Membership(SQLModel, table=True):
    """Membership model for actor-classroom relationships."""

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Foreign keys
    actor_id: UUID = Field(foreign_key="actor.id", index=True)
    classroom_id: UUID = Field(foreign_key="classroom.id", index=True)

    # Membership details
    membership_role: MembershipRole = Field(
        default=MembershipRole.STUDENT,
        sa_column=enum_column(MembershipRole, MembershipRole.STUDENT),
    )
    status: MembershipStatus = Field(
        default=MembershipStatus.PENDING,
        sa_column=enum_column(MembershipStatus, MembershipStatus.PENDING),
    )

    # Timestamps
    joined_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)

    # Approval tracking
    reviewed_by: Optional[UUID] = Field(default=None, foreign_key="actor.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    # One row per actor-classroom pair
    __table_args__ = (
        UniqueConstraint("actor_id", "classroom_id", name="uq_membership_actor_classroom"),
    )
