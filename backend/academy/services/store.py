"""
Request store: durable storage for workflow requests and memberships.

Uniqueness of pending requests is enforced twice: a pre-check that gives a
readable error, and partial unique indexes that settle races between
concurrent writers. Decisions use a compare-and-set UPDATE guarded by
``status = 'pending'`` so exactly one of two concurrent deciders wins.

The store flushes but never commits; the workflow engine owns the
transaction so side effects land atomically with the status write.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type, Union
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from ..core.errors import AlreadyReviewed, Conflict, InvalidTransition, NotFound
from ..models import (
    DECISIONS,
    Classroom,
    MasterRoleRequest,
    Membership,
    MembershipRole,
    MembershipStatus,
    RequestStatus,
    ResignationRequest,
    StaffRequest,
    utcnow,
)

logger = logging.getLogger(__name__)

WorkflowRequest = Union[MasterRoleRequest, StaffRequest, ResignationRequest]


class RequestKind(str, Enum):
    """The three request kinds handled by the workflow engine."""

    MASTER_ROLE = "master_role"
    STAFF = "staff"
    RESIGNATION = "resignation"


@dataclass(frozen=True)
class KindInfo:
    model: Type[SQLModel]
    key_fields: Tuple[str, ...]
    notes_field: str
    label: str


KINDS: Dict[RequestKind, KindInfo] = {
    RequestKind.MASTER_ROLE: KindInfo(
        MasterRoleRequest, ("mentor_id",), "admin_notes", "Master-role request"
    ),
    RequestKind.STAFF: KindInfo(
        StaffRequest, ("mentor_id", "classroom_id"), "admin_notes", "Staff request"
    ),
    RequestKind.RESIGNATION: KindInfo(
        ResignationRequest, ("mentor_id", "classroom_id"), "master_notes", "Resignation request"
    ),
}


def kind_of(request: WorkflowRequest) -> RequestKind:
    for kind, info in KINDS.items():
        if isinstance(request, info.model):
            return kind
    raise TypeError(f"Not a workflow request: {type(request).__name__}")


class RequestStore:
    """Query and mutate workflow records within one database session."""

    def __init__(self, db: Session):
        self.db = db

    # --- Workflow requests ---

    def create(self, request: WorkflowRequest) -> WorkflowRequest:
        """Insert a pending request, failing with Conflict on a duplicate key."""
        kind = kind_of(request)
        info = KINDS[kind]
        request.status = RequestStatus.PENDING

        key = {name: getattr(request, name) for name in info.key_fields}
        if self.find_pending(kind, **key) is not None:
            raise Conflict(f"{info.label} already pending for {self._describe_key(key)}")

        self.db.add(request)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race against a concurrent submission for the same key
            self.db.rollback()
            raise Conflict(f"{info.label} already pending for {self._describe_key(key)}")

        logger.info(f"Created {kind.value} request {request.id} for {self._describe_key(key)}")
        return request

    def get(self, kind: RequestKind, request_id: UUID) -> WorkflowRequest:
        info = KINDS[kind]
        request = self.db.get(info.model, request_id)
        if request is None:
            raise NotFound(f"{info.label} not found")
        return request

    def find_pending(self, kind: RequestKind, **key) -> Optional[WorkflowRequest]:
        model = KINDS[kind].model
        statement = select(model).where(model.status == RequestStatus.PENDING)
        for name, value in key.items():
            statement = statement.where(getattr(model, name) == value)
        return self.db.exec(statement).first()

    def list_by_classroom(
        self,
        kind: RequestKind,
        classroom_id: UUID,
        status: Optional[RequestStatus] = None,
    ) -> List[WorkflowRequest]:
        model = KINDS[kind].model
        if not hasattr(model, "classroom_id"):
            raise ValueError(f"{kind.value} requests are not classroom-scoped")
        return self._list(model, model.classroom_id == classroom_id, status)

    def list_by_actor(
        self,
        kind: RequestKind,
        actor_id: UUID,
        status: Optional[RequestStatus] = None,
    ) -> List[WorkflowRequest]:
        model = KINDS[kind].model
        return self._list(model, model.mentor_id == actor_id, status)

    def list_all(
        self, kind: RequestKind, status: Optional[RequestStatus] = None
    ) -> List[WorkflowRequest]:
        model = KINDS[kind].model
        return self._list(model, None, status)

    def _list(self, model, condition, status: Optional[RequestStatus]) -> List[WorkflowRequest]:
        statement = select(model)
        if condition is not None:
            statement = statement.where(condition)
        if status is not None:
            statement = statement.where(model.status == status)
        return list(self.db.exec(statement.order_by(model.created_at.desc())).all())

    def transition(
        self,
        kind: RequestKind,
        request_id: UUID,
        new_status: RequestStatus,
        reviewer_id: UUID,
        notes: Optional[str] = None,
    ) -> WorkflowRequest:
        """
        Move a pending request to its decided status.

        Raises:
            InvalidTransition: ``new_status`` is not a decision.
            AlreadyReviewed: the request is no longer pending.
            NotFound: no such request.
        """
        new_status = RequestStatus(new_status)
        if new_status not in DECISIONS:
            raise InvalidTransition(f"Cannot move a request to {new_status.value}")

        info = KINDS[kind]
        model = info.model
        values = {
            "status": new_status,
            "reviewed_by": reviewer_id,
            "reviewed_at": utcnow(),
        }
        if notes is not None:
            values[info.notes_field] = notes

        result = self.db.execute(
            update(model)
            .where(model.id == request_id, model.status == RequestStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.db.get(model, request_id, populate_existing=True)
            if current is None:
                raise NotFound(f"{info.label} not found")
            raise AlreadyReviewed(f"{info.label} was already {current.status.value}")

        logger.info(f"{info.label} {request_id} -> {new_status.value} by {reviewer_id}")
        return self.db.get(model, request_id, populate_existing=True)

    # --- Memberships ---

    def get_membership(self, membership_id: UUID) -> Membership:
        membership = self.db.get(Membership, membership_id)
        if membership is None:
            raise NotFound("Membership not found")
        return membership

    def find_membership(self, actor_id: UUID, classroom_id: UUID) -> Optional[Membership]:
        return self.db.exec(
            select(Membership).where(
                Membership.actor_id == actor_id,
                Membership.classroom_id == classroom_id,
            )
        ).first()

    def active_staff_membership(self, actor_id: UUID, classroom_id: UUID) -> Optional[Membership]:
        membership = self.find_membership(actor_id, classroom_id)
        if (
            membership is not None
            and membership.membership_role == MembershipRole.STAFF
            and membership.status == MembershipStatus.ACTIVE
        ):
            return membership
        return None

    def count_active(self, classroom_id: UUID, role: MembershipRole) -> int:
        count = self.db.exec(
            select(func.count(Membership.id)).where(
                Membership.classroom_id == classroom_id,
                Membership.membership_role == role,
                Membership.status == MembershipStatus.ACTIVE,
            )
        ).one()
        return count or 0

    def list_memberships(
        self,
        classroom_id: UUID,
        role: Optional[MembershipRole] = None,
        status: Optional[MembershipStatus] = None,
    ) -> List[Membership]:
        return self._list_memberships(Membership.classroom_id == classroom_id, role, status)

    def list_memberships_by_actor(
        self,
        actor_id: UUID,
        role: Optional[MembershipRole] = None,
        status: Optional[MembershipStatus] = None,
    ) -> List[Membership]:
        return self._list_memberships(Membership.actor_id == actor_id, role, status)

    def _list_memberships(
        self,
        condition,
        role: Optional[MembershipRole],
        status: Optional[MembershipStatus],
    ) -> List[Membership]:
        statement = select(Membership).where(condition)
        if role is not None:
            statement = statement.where(Membership.membership_role == role)
        if status is not None:
            statement = statement.where(Membership.status == status)
        return list(self.db.exec(statement.order_by(Membership.joined_at.desc())).all())

    def list_staff_classrooms(self, actor_id: UUID) -> List[Classroom]:
        """Classrooms where the actor holds an active staff membership."""
        statement = (
            select(Classroom)
            .join(Membership, Membership.classroom_id == Classroom.id)
            .where(
                Membership.actor_id == actor_id,
                Membership.membership_role == MembershipRole.STAFF,
                Membership.status == MembershipStatus.ACTIVE,
            )
            .order_by(Classroom.title)
        )
        return list(self.db.exec(statement).all())

    def enroll(self, actor_id: UUID, classroom_id: UUID) -> Membership:
        """Create a pending student membership, re-using a rejected row."""
        existing = self.find_membership(actor_id, classroom_id)
        if existing is not None:
            if existing.status != MembershipStatus.REJECTED:
                raise Conflict(f"Membership already {existing.status.value} for this classroom")
            existing.membership_role = MembershipRole.STUDENT
            existing.status = MembershipStatus.PENDING
            existing.reviewed_by = None
            existing.reviewed_at = None
            existing.joined_at = utcnow()
            membership = existing
        else:
            membership = Membership(
                actor_id=actor_id,
                classroom_id=classroom_id,
                membership_role=MembershipRole.STUDENT,
                status=MembershipStatus.PENDING,
            )

        self.db.add(membership)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Membership already exists for this classroom")
        return membership

    def activate_staff(self, actor_id: UUID, classroom_id: UUID, reviewer_id: UUID) -> Membership:
        """Create or reactivate an active staff membership for the pair."""
        now = utcnow()
        membership = self.find_membership(actor_id, classroom_id)
        if membership is None:
            membership = Membership(actor_id=actor_id, classroom_id=classroom_id, joined_at=now)

        membership.membership_role = MembershipRole.STAFF
        membership.status = MembershipStatus.ACTIVE
        membership.reviewed_by = reviewer_id
        membership.reviewed_at = now
        self.db.add(membership)
        self.db.flush()
        return membership

    def decide_membership(
        self, membership_id: UUID, new_status: MembershipStatus, reviewer_id: UUID
    ) -> Membership:
        """Compare-and-set a pending membership to active or rejected."""
        new_status = MembershipStatus(new_status)
        if new_status == MembershipStatus.PENDING:
            raise InvalidTransition("Cannot move a membership back to pending")

        result = self.db.execute(
            update(Membership)
            .where(Membership.id == membership_id, Membership.status == MembershipStatus.PENDING)
            .values(status=new_status, reviewed_by=reviewer_id, reviewed_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = self.db.get(Membership, membership_id, populate_existing=True)
            if current is None:
                raise NotFound("Membership not found")
            raise AlreadyReviewed(f"Membership was already {current.status.value}")

        return self.db.get(Membership, membership_id, populate_existing=True)

    def remove_active_staff(self, actor_id: UUID, classroom_id: UUID) -> int:
        """Delete the active staff membership for the pair; returns rows removed."""
        result = self.db.execute(
            delete(Membership)
            .where(
                Membership.actor_id == actor_id,
                Membership.classroom_id == classroom_id,
                Membership.membership_role == MembershipRole.STAFF,
                Membership.status == MembershipStatus.ACTIVE,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @staticmethod
    def _describe_key(key: dict) -> str:
        return ", ".join(f"{name}={value}" for name, value in key.items())
