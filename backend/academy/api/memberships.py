from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..core.deps import check_reviewed_by, get_current_actor, get_review, get_workflow
from ..core.errors import ValidationError
from ..models.actor import Actor
from ..models.membership import MembershipRole, MembershipStatus
from ..schemas.requests import EnrollmentCreate, MembershipDecision, MembershipResponse
from ..services.review import ReviewService
from ..services.workflow import WorkflowEngine

router = APIRouter()


@router.get("", response_model=List[MembershipResponse])
async def list_memberships(
    classroom_id: Optional[UUID] = Query(default=None, alias="classroomId"),
    user_id: Optional[UUID] = Query(default=None, alias="userId"),
    role: Optional[MembershipRole] = None,
    status: Optional[MembershipStatus] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """List memberships by classroom (its roster) or by actor (their own)."""
    if user_id is not None:
        memberships = review.actor_memberships(current_actor, user_id, role, status)
        if classroom_id is not None:
            memberships = [m for m in memberships if m.classroom_id == classroom_id]
        return memberships
    if classroom_id is not None:
        return review.classroom_memberships(current_actor, classroom_id, role, status)
    raise ValidationError("classroomId or userId is required")


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    enrollment: EnrollmentCreate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Apply to join a classroom as a student."""
    return workflow.submit(current_actor, enrollment)


@router.patch("/{membership_id}/status", response_model=MembershipResponse)
async def decide_enrollment(
    membership_id: UUID,
    decision: MembershipDecision,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Admit or reject a pending student."""
    check_reviewed_by(current_actor, decision.reviewed_by)
    return workflow.decide_enrollment(
        current_actor, membership_id, MembershipStatus(decision.status)
    )
