"""
Workflow engine: submission rules, reviewer authorization and side effects.

Every request follows ``pending -> approved | rejected``. A decision is
validated (reviewer authority, no self-review, still pending, preconditions
still true) and then written together with its side effect in a single
transaction:

    master-role approved  -> applicant.is_master = True
    staff approved        -> active staff membership for (mentor, classroom)
    resignation approved  -> that staff membership is deleted
    enrollment approved   -> membership becomes active (capacity permitting)

Failures roll the whole transaction back. Nothing is retried here.
"""

import logging
from contextlib import contextmanager
from typing import Any, Optional, Protocol, Union
from uuid import UUID

from sqlmodel import Session, select

from membership_core import GateState, MasterMentor, Requirement, RoleIs, evaluate_access

from ..core.errors import (
    AlreadyReviewed,
    Conflict,
    Forbidden,
    NotFound,
    StaleRequest,
    Unauthenticated,
)
from ..models import (
    Actor,
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
from ..schemas.requests import (
    EnrollmentCreate,
    MasterRoleRequestCreate,
    RequestSubmission,
    ResignationRequestCreate,
    StaffRequestCreate,
)
from .notifications import DecisionEvent
from .store import RequestKind, RequestStore, WorkflowRequest

logger = logging.getLogger(__name__)

STUDENT = RoleIs("student")
MENTOR = RoleIs("mentor")
ADMIN = RoleIs("admin")
MASTER = MasterMentor()


class Notifier(Protocol):
    def request_decided(self, event: DecisionEvent) -> None: ...


def require(actor: Optional[Actor], requirement: Requirement, action: str) -> Actor:
    """Run the access gate for ``actor`` and raise on anything but ALLOWED."""
    state = evaluate_access(actor, requirement)
    if state == GateState.UNAUTHENTICATED:
        raise Unauthenticated(f"Sign in to {action}")
    if state != GateState.ALLOWED:
        deny(actor, f"{action} requires {requirement.describe()}")
    return actor


def deny(actor: Optional[Actor], reason: str) -> None:
    """Log a potential security event and raise Forbidden."""
    logger.warning(f"SECURITY: forbidden for actor {getattr(actor, 'id', None)}: {reason}")
    raise Forbidden(reason)


class WorkflowEngine:
    """Applies submissions and decisions for one database session."""

    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.store = RequestStore(db)
        self.notifier = notifier

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- Lookups ---

    def _get_actor(self, actor_id: UUID) -> Actor:
        actor = self.db.get(Actor, actor_id)
        if actor is None:
            raise NotFound("Actor not found")
        return actor

    def _get_classroom(self, classroom_id: UUID, lock: bool = False) -> Classroom:
        statement = select(Classroom).where(Classroom.id == classroom_id)
        if lock:
            statement = statement.with_for_update()
        classroom = self.db.exec(statement).first()
        if classroom is None:
            raise NotFound("Classroom not found")
        return classroom

    # --- Submissions ---

    def submit(self, actor: Optional[Actor], submission: RequestSubmission) -> Union[WorkflowRequest, Membership]:
        """Dispatch a tagged submission to the handler for its kind."""
        handlers = {
            MasterRoleRequestCreate: self.submit_master_role_request,
            StaffRequestCreate: self.submit_staff_request,
            ResignationRequestCreate: self.submit_resignation_request,
            EnrollmentCreate: self.enroll,
        }
        return handlers[type(submission)](actor, submission)

    @staticmethod
    def _require_self(actor: Actor, applicant_id: UUID) -> None:
        if actor.id != applicant_id:
            deny(actor, "Requests can only be submitted for yourself")

    def submit_master_role_request(
        self, actor: Optional[Actor], data: MasterRoleRequestCreate
    ) -> MasterRoleRequest:
        require(actor, MENTOR, "apply for the master role")
        self._require_self(actor, data.mentor_id)

        with self._transaction():
            mentor = self._get_actor(data.mentor_id)
            if mentor.is_master:
                raise Conflict("You already have the master role")

            request = self.store.create(
                MasterRoleRequest(
                    mentor_id=mentor.id,
                    reason=data.reason,
                    experience=data.experience,
                    planned_classrooms=data.planned_classrooms,
                    qualifications=data.qualifications or None,
                )
            )
        self.db.refresh(request)
        return request

    def submit_staff_request(self, actor: Optional[Actor], data: StaffRequestCreate) -> StaffRequest:
        require(actor, MENTOR, "request to join a classroom staff")
        self._require_self(actor, data.mentor_id)

        with self._transaction():
            classroom = self._get_classroom(data.classroom_id)
            if not classroom.is_active:
                raise Conflict("Classroom is not active")
            if classroom.owner_id == data.mentor_id:
                raise Conflict("You already own this classroom")
            if self.store.active_staff_membership(data.mentor_id, classroom.id):
                raise Conflict("You are already on this classroom's staff")

            request = self.store.create(
                StaffRequest(
                    mentor_id=data.mentor_id,
                    classroom_id=classroom.id,
                    message=data.message,
                )
            )
        self.db.refresh(request)
        return request

    def submit_resignation_request(
        self, actor: Optional[Actor], data: ResignationRequestCreate
    ) -> ResignationRequest:
        require(actor, MENTOR, "resign from a classroom staff")
        self._require_self(actor, data.mentor_id)

        with self._transaction():
            classroom = self._get_classroom(data.classroom_id)
            if not self.store.active_staff_membership(data.mentor_id, classroom.id):
                raise Conflict("You are not an active staff member of this classroom")

            request = self.store.create(
                ResignationRequest(
                    mentor_id=data.mentor_id,
                    classroom_id=classroom.id,
                    reason=data.reason,
                )
            )
        self.db.refresh(request)
        return request

    def enroll(self, actor: Optional[Actor], data: EnrollmentCreate) -> Membership:
        require(actor, STUDENT, "enroll in a classroom")
        self._require_self(actor, data.actor_id)

        with self._transaction():
            classroom = self._get_classroom(data.classroom_id)
            if not classroom.is_active:
                raise Conflict("Classroom is not active")
            membership = self.store.enroll(data.actor_id, classroom.id)
        self.db.refresh(membership)
        logger.info(f"Enrollment {membership.id} pending for classroom {classroom.id}")
        return membership

    # --- Decisions ---

    @staticmethod
    def _authorize_classroom_owner(reviewer: Actor, classroom: Classroom) -> None:
        if classroom.owner_id != reviewer.id:
            deny(reviewer, f"Only the owner of classroom {classroom.id} may review its requests")

    @staticmethod
    def _forbid_self_review(reviewer: Actor, applicant_id: UUID) -> None:
        if reviewer.id == applicant_id:
            deny(reviewer, "You cannot review your own request")

    @staticmethod
    def _ensure_pending(status: Any, label: str) -> None:
        if status != RequestStatus.PENDING and status != MembershipStatus.PENDING:
            raise AlreadyReviewed(f"{label} was already {getattr(status, 'value', status)}")

    def decide_master_role_request(
        self,
        reviewer: Optional[Actor],
        request_id: UUID,
        status: RequestStatus,
        notes: Optional[str] = None,
    ) -> MasterRoleRequest:
        require(reviewer, ADMIN, "review master-role requests")

        with self._transaction():
            request = self.store.get(RequestKind.MASTER_ROLE, request_id)
            self._forbid_self_review(reviewer, request.mentor_id)
            self._ensure_pending(request.status, "Master-role request")

            decided = self.store.transition(
                RequestKind.MASTER_ROLE, request_id, status, reviewer.id, notes
            )
            applicant = self._get_actor(decided.mentor_id)
            if decided.status == RequestStatus.APPROVED:
                applicant.is_master = True
                applicant.updated_at = utcnow()
                self.db.add(applicant)

        self.db.refresh(decided)
        self._notify("master_role", decided, applicant, reviewer, notes)
        return decided

    def decide_staff_request(
        self,
        reviewer: Optional[Actor],
        request_id: UUID,
        status: RequestStatus,
        notes: Optional[str] = None,
    ) -> StaffRequest:
        require(reviewer, MASTER, "review classroom requests")

        with self._transaction():
            request = self.store.get(RequestKind.STAFF, request_id)
            classroom = self._get_classroom(request.classroom_id)
            self._authorize_classroom_owner(reviewer, classroom)
            self._forbid_self_review(reviewer, request.mentor_id)
            self._ensure_pending(request.status, "Staff request")

            if RequestStatus(status) == RequestStatus.APPROVED and not classroom.is_active:
                raise Conflict("Classroom is not active")

            decided = self.store.transition(
                RequestKind.STAFF, request_id, status, reviewer.id, notes
            )
            if decided.status == RequestStatus.APPROVED:
                self.store.activate_staff(decided.mentor_id, classroom.id, reviewer.id)
            applicant = self._get_actor(decided.mentor_id)

        self.db.refresh(decided)
        self._notify("staff", decided, applicant, reviewer, notes)
        return decided

    def decide_resignation_request(
        self,
        reviewer: Optional[Actor],
        request_id: UUID,
        status: RequestStatus,
        notes: Optional[str] = None,
    ) -> ResignationRequest:
        require(reviewer, MASTER, "review classroom requests")

        with self._transaction():
            request = self.store.get(RequestKind.RESIGNATION, request_id)
            classroom = self._get_classroom(request.classroom_id)
            self._authorize_classroom_owner(reviewer, classroom)
            self._forbid_self_review(reviewer, request.mentor_id)
            self._ensure_pending(request.status, "Resignation request")

            approving = RequestStatus(status) == RequestStatus.APPROVED
            if approving and not self.store.active_staff_membership(request.mentor_id, classroom.id):
                raise StaleRequest("The staff membership for this resignation no longer exists")

            decided = self.store.transition(
                RequestKind.RESIGNATION, request_id, status, reviewer.id, notes
            )
            if approving and self.store.remove_active_staff(decided.mentor_id, classroom.id) != 1:
                # Removed concurrently between the check and the delete
                raise StaleRequest("The staff membership for this resignation no longer exists")
            applicant = self._get_actor(decided.mentor_id)

        self.db.refresh(decided)
        self._notify("resignation", decided, applicant, reviewer, notes)
        return decided

    def decide_enrollment(
        self,
        reviewer: Optional[Actor],
        membership_id: UUID,
        status: MembershipStatus,
    ) -> Membership:
        require(reviewer, MASTER, "review classroom requests")

        with self._transaction():
            membership = self.store.get_membership(membership_id)
            classroom = self._get_classroom(membership.classroom_id, lock=True)
            self._authorize_classroom_owner(reviewer, classroom)
            self._forbid_self_review(reviewer, membership.actor_id)
            self._ensure_pending(membership.status, "Enrollment")

            if MembershipStatus(status) == MembershipStatus.ACTIVE:
                if not classroom.is_active:
                    raise Conflict("Classroom is not active")
                active = self.store.count_active(classroom.id, MembershipRole.STUDENT)
                if active >= classroom.max_capacity:
                    raise Conflict(f"Classroom is full ({classroom.max_capacity} students)")

            decided = self.store.decide_membership(membership_id, status, reviewer.id)
            applicant = self._get_actor(decided.actor_id)

        self.db.refresh(decided)
        self._notify("enrollment", decided, applicant, reviewer, None)
        return decided

    # --- Notifications ---

    def _notify(
        self,
        kind: str,
        record: Any,
        applicant: Actor,
        reviewer: Actor,
        notes: Optional[str],
    ) -> None:
        if self.notifier is None:
            return

        name = " ".join(part for part in (applicant.first_name, applicant.last_name) if part)
        self.notifier.request_decided(
            DecisionEvent(
                kind=kind,
                request_id=str(record.id),
                status=record.status.value,
                reviewer_id=str(reviewer.id),
                applicant_id=str(applicant.id),
                applicant_email=applicant.email,
                applicant_name=name or applicant.username,
                classroom_id=str(record.classroom_id) if getattr(record, "classroom_id", None) else None,
                notes=notes,
            )
        )
