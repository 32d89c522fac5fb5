"""
Review surfaces: the bucketed, searchable views reviewers work from.

Every call re-reads the store so a client that refreshes after a write
always sees its own write.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Type
from uuid import UUID

from pydantic import BaseModel
from sqlmodel import Session, select

from membership_core import AnyOf, MasterMentor, RoleIs, SignedIn, build_board

from ..models import Actor, Classroom, MembershipRole, MembershipStatus, RequestStatus
from ..core.errors import NotFound
from ..schemas.actor import ActorSummary
from ..schemas.requests import (
    MasterRoleRequestResponse,
    MembershipResponse,
    ResignationRequestResponse,
    StaffRequestResponse,
)
from ..schemas.review import ReviewBoardResponse
from .store import RequestKind, RequestStore
from .workflow import ADMIN, deny, require

logger = logging.getLogger(__name__)

RESPONSES: Dict[RequestKind, Type[BaseModel]] = {
    RequestKind.MASTER_ROLE: MasterRoleRequestResponse,
    RequestKind.STAFF: StaffRequestResponse,
    RequestKind.RESIGNATION: ResignationRequestResponse,
}


class BoardKind(str, Enum):
    """Request kinds shown on a classroom's review board."""

    ENROLLMENT = "enrollment"
    STAFF = "staff"
    RESIGNATION = "resignation"


class ReviewService:
    def __init__(self, db: Session):
        self.db = db
        self.store = RequestStore(db)

    def _applicants(self, ids: Iterable[UUID]) -> Dict[UUID, Actor]:
        ids = set(ids)
        if not ids:
            return {}
        actors = self.db.exec(select(Actor).where(Actor.id.in_(ids))).all()
        return {actor.id: actor for actor in actors}

    def _responses(
        self,
        records: List,
        applicant_id_of: Callable,
        response_cls: Type[BaseModel],
    ) -> List[Tuple[BaseModel, Optional[Actor]]]:
        applicants = self._applicants(applicant_id_of(r) for r in records)
        rows = []
        for record in records:
            actor = applicants.get(applicant_id_of(record))
            item = response_cls.model_validate(record)
            item.applicant = ActorSummary.model_validate(actor) if actor else None
            rows.append((item, actor))
        return rows

    @staticmethod
    def _board(kind: str, rows, search: Optional[str]) -> ReviewBoardResponse:
        board = build_board(
            rows,
            status_of=lambda row: row[0].status,
            search=search,
            search_fields_of=lambda row: row[1].display_fields if row[1] else (),
        )
        return ReviewBoardResponse(
            kind=kind,
            pending=[item for item, _ in board.pending],
            approved=[item for item, _ in board.approved],
            rejected=[item for item, _ in board.rejected],
            counts=board.counts,
        )

    # --- Admin ---

    def master_role_board(self, viewer: Optional[Actor], search: Optional[str] = None) -> ReviewBoardResponse:
        require(viewer, ADMIN, "view master-role requests")
        records = self.store.list_all(RequestKind.MASTER_ROLE)
        rows = self._responses(records, lambda r: r.mentor_id, MasterRoleRequestResponse)
        return self._board(RequestKind.MASTER_ROLE.value, rows, search)

    def list_master_role_requests(
        self,
        viewer: Optional[Actor],
        status: Optional[RequestStatus] = None,
        search: Optional[str] = None,
    ) -> List[BaseModel]:
        """Flat list for the admin table; same filter as the board."""
        board = self.master_role_board(viewer, search)
        if status is None:
            return board.pending + board.approved + board.rejected
        return {
            RequestStatus.PENDING: board.pending,
            RequestStatus.APPROVED: board.approved,
            RequestStatus.REJECTED: board.rejected,
        }[RequestStatus(status)]

    # --- Classroom master ---

    def classroom_board(
        self,
        viewer: Optional[Actor],
        classroom_id: UUID,
        kind: BoardKind,
        search: Optional[str] = None,
    ) -> ReviewBoardResponse:
        require(viewer, AnyOf(ADMIN, MasterMentor()), "view classroom requests")
        classroom = self.db.get(Classroom, classroom_id)
        if classroom is None:
            raise NotFound("Classroom not found")
        if viewer.role != "admin" and classroom.owner_id != viewer.id:
            deny(viewer, f"Only the owner of classroom {classroom_id} may view its requests")

        kind = BoardKind(kind)
        if kind == BoardKind.ENROLLMENT:
            records = self.store.list_memberships(classroom_id, role=MembershipRole.STUDENT)
            rows = self._responses(records, lambda r: r.actor_id, MembershipResponse)
        else:
            request_kind = RequestKind(kind.value)
            records = self.store.list_by_classroom(request_kind, classroom_id)
            rows = self._responses(records, lambda r: r.mentor_id, RESPONSES[request_kind])

        logger.debug(f"Classroom {classroom_id} {kind.value} board: {len(rows)} records")
        return self._board(kind.value, rows, search)

    # --- Memberships ---

    def classroom_memberships(
        self,
        viewer: Optional[Actor],
        classroom_id: UUID,
        role: Optional[MembershipRole] = None,
        status: Optional[MembershipStatus] = None,
    ) -> List[BaseModel]:
        """
        A classroom's roster, e.g. its staff with ``role=staff``.

        Admins see every roster; anyone else must own or staff the classroom.
        """
        require(viewer, SignedIn(), "view classroom memberships")
        classroom = self.db.get(Classroom, classroom_id)
        if classroom is None:
            raise NotFound("Classroom not found")
        if (
            viewer.role != "admin"
            and classroom.owner_id != viewer.id
            and self.store.active_staff_membership(viewer.id, classroom_id) is None
        ):
            deny(viewer, f"Only staff of classroom {classroom_id} may view its memberships")

        records = self.store.list_memberships(classroom_id, role, status)
        return [item for item, _ in self._responses(records, lambda r: r.actor_id, MembershipResponse)]

    def actor_memberships(
        self,
        viewer: Optional[Actor],
        actor_id: UUID,
        role: Optional[MembershipRole] = None,
        status: Optional[MembershipStatus] = None,
    ) -> List[BaseModel]:
        """Every membership an actor holds or has applied for, newest first."""
        require(viewer, SignedIn(), "view memberships")
        if viewer.role != "admin" and viewer.id != actor_id:
            deny(viewer, "Memberships can only be listed for yourself")

        records = self.store.list_memberships_by_actor(actor_id, role, status)
        return [item for item, _ in self._responses(records, lambda r: r.actor_id, MembershipResponse)]

    def staff_classrooms(self, viewer: Optional[Actor], mentor_id: UUID) -> List[Classroom]:
        """Classrooms a mentor currently staffs; the ones they may resign from."""
        require(viewer, AnyOf(ADMIN, RoleIs("mentor")), "view staff classrooms")
        if viewer.role != "admin" and viewer.id != mentor_id:
            deny(viewer, "Mentors can only view their own staff classrooms")
        return self.store.list_staff_classrooms(mentor_id)

    # --- Applicant ---

    def mentor_requests(
        self,
        viewer: Optional[Actor],
        kind: RequestKind,
        mentor_id: UUID,
        status: Optional[RequestStatus] = None,
    ) -> List[BaseModel]:
        """An applicant's own requests of one kind, newest first."""
        require(viewer, AnyOf(ADMIN, RoleIs("mentor")), "view mentor requests")
        if viewer.role != "admin" and viewer.id != mentor_id:
            deny(viewer, "Mentors can only view their own requests")

        kind = RequestKind(kind)
        records = self.store.list_by_actor(kind, mentor_id, status)
        return [item for item, _ in self._responses(records, lambda r: r.mentor_id, RESPONSES[kind])]
