from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from ..core.deps import get_current_actor, get_review
from ..models.actor import Actor
from ..models.request_status import RequestStatus
from ..schemas.classroom import ClassroomResponse
from ..schemas.requests import (
    MasterRoleRequestResponse,
    ResignationRequestResponse,
    StaffRequestResponse,
)
from ..services.review import ReviewService
from ..services.store import RequestKind

router = APIRouter()


@router.get("/{mentor_id}/staff-classrooms", response_model=List[ClassroomResponse])
async def mentor_staff_classrooms(
    mentor_id: UUID,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Classrooms the mentor currently staffs."""
    return review.staff_classrooms(current_actor, mentor_id)


@router.get("/{mentor_id}/master-role-requests", response_model=List[MasterRoleRequestResponse])
async def mentor_master_role_requests(
    mentor_id: UUID,
    status: Optional[RequestStatus] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """A mentor's own master-role applications."""
    return review.mentor_requests(current_actor, RequestKind.MASTER_ROLE, mentor_id, status)


@router.get("/{mentor_id}/staff-requests", response_model=List[StaffRequestResponse])
async def mentor_staff_requests(
    mentor_id: UUID,
    status: Optional[RequestStatus] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    return review.mentor_requests(current_actor, RequestKind.STAFF, mentor_id, status)


@router.get("/{mentor_id}/resignation-requests", response_model=List[ResignationRequestResponse])
async def mentor_resignation_requests(
    mentor_id: UUID,
    status: Optional[RequestStatus] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    return review.mentor_requests(current_actor, RequestKind.RESIGNATION, mentor_id, status)
