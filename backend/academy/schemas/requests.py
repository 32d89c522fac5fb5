"""Request payloads and responses.

Submissions are tagged variants: each kind carries a ``kind`` literal and
forbids unknown fields, so malformed bodies fail at the boundary with
field-level messages instead of deep inside the engine.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID
from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel

from ..core.config import settings
from ..models.membership import MembershipRole, MembershipStatus
from ..models.request_status import RequestStatus
from .actor import ActorSummary


class _Submission(BaseModel):
    class Config:
        extra = "forbid"
        str_strip_whitespace = True
        alias_generator = to_camel
        populate_by_name = True


class MasterRoleRequestCreate(_Submission):
    """Mentor applies for the master role."""

    kind: Literal["master_role"] = "master_role"
    mentor_id: UUID
    reason: str = Field(min_length=settings.MIN_MASTER_REASON_LENGTH, max_length=4000)
    experience: str = Field(min_length=settings.MIN_MASTER_EXPERIENCE_LENGTH, max_length=4000)
    planned_classrooms: str = Field(
        min_length=settings.MIN_PLANNED_CLASSROOMS_LENGTH, max_length=4000
    )
    qualifications: Optional[str] = Field(default=None, max_length=4000)


class StaffRequestCreate(_Submission):
    """Mentor asks to join a classroom's teaching staff."""

    kind: Literal["staff"] = "staff"
    mentor_id: UUID
    classroom_id: UUID
    message: str = Field(min_length=settings.MIN_STAFF_MESSAGE_LENGTH, max_length=2000)


class ResignationRequestCreate(_Submission):
    """Staff member asks to leave a classroom."""

    kind: Literal["resignation"] = "resignation"
    mentor_id: UUID
    classroom_id: UUID
    reason: str = Field(min_length=settings.MIN_RESIGNATION_REASON_LENGTH, max_length=2000)


class EnrollmentCreate(_Submission):
    """Student asks to be admitted to a classroom."""

    kind: Literal["enrollment"] = "enrollment"
    actor_id: UUID
    classroom_id: UUID


RequestSubmission = Annotated[
    Union[MasterRoleRequestCreate, StaffRequestCreate, ResignationRequestCreate, EnrollmentCreate],
    Field(discriminator="kind"),
]


class DecisionUpdate(_Submission):
    """Reviewer decision on a pending request."""

    status: Literal["approved", "rejected"]
    reviewed_by: Optional[UUID] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class AdminDecisionUpdate(DecisionUpdate):
    """Decision on a master-role or staff request, stored as ``admin_notes``."""

    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        validation_alias=AliasChoices("notes", "adminNotes", "admin_notes"),
    )


class MasterDecisionUpdate(DecisionUpdate):
    """Decision on a resignation request, stored as ``master_notes``."""

    notes: Optional[str] = Field(
        default=None,
        max_length=2000,
        validation_alias=AliasChoices("notes", "masterNotes", "master_notes"),
    )


class MembershipDecision(_Submission):
    """Reviewer decision on a pending enrollment."""

    status: Literal["active", "rejected"]
    reviewed_by: Optional[UUID] = None


class _Response(BaseModel):
    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class MasterRoleRequestResponse(_Response):
    """Master-role request response model."""

    kind: Literal["master_role"] = "master_role"
    id: UUID
    mentor_id: UUID
    reason: str
    experience: str
    planned_classrooms: str
    qualifications: Optional[str] = None
    status: RequestStatus
    admin_notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    applicant: Optional[ActorSummary] = None


class StaffRequestResponse(_Response):
    """Staff request response model."""

    kind: Literal["staff"] = "staff"
    id: UUID
    mentor_id: UUID
    classroom_id: UUID
    message: str
    status: RequestStatus
    admin_notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    applicant: Optional[ActorSummary] = None


class ResignationRequestResponse(_Response):
    """Resignation request response model."""

    kind: Literal["resignation"] = "resignation"
    id: UUID
    mentor_id: UUID
    classroom_id: UUID
    reason: str
    status: RequestStatus
    master_notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    applicant: Optional[ActorSummary] = None


class MembershipResponse(_Response):
    """Classroom membership (enrollment) response model."""

    kind: Literal["enrollment"] = "enrollment"
    id: UUID
    actor_id: UUID
    classroom_id: UUID
    membership_role: MembershipRole
    status: MembershipStatus
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    joined_at: datetime
    applicant: Optional[ActorSummary] = None
