from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core.deps import check_reviewed_by, get_current_actor, get_review, get_workflow
from ..models.actor import Actor
from ..models.request_status import RequestStatus
from ..schemas.requests import (
    AdminDecisionUpdate,
    MasterRoleRequestCreate,
    MasterRoleRequestResponse,
)
from ..schemas.review import ReviewBoardResponse
from ..services.review import ReviewService
from ..services.workflow import WorkflowEngine

router = APIRouter()


@router.post("", response_model=MasterRoleRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_master_role_request(
    request_data: MasterRoleRequestCreate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Apply for the master role."""
    return workflow.submit(current_actor, request_data)


@router.get("", response_model=List[MasterRoleRequestResponse])
async def list_master_role_requests(
    status: Optional[RequestStatus] = None,
    search: Optional[str] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """List master-role requests (admin only), newest first."""
    return review.list_master_role_requests(current_actor, status, search)


@router.get("/board", response_model=ReviewBoardResponse[MasterRoleRequestResponse])
async def master_role_board(
    search: Optional[str] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Master-role requests split into pending / approved / rejected."""
    return review.master_role_board(current_actor, search)


@router.patch("/{request_id}/status", response_model=MasterRoleRequestResponse)
async def decide_master_role_request(
    request_id: UUID,
    decision: AdminDecisionUpdate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Approve or reject a master-role request."""
    check_reviewed_by(current_actor, decision.reviewed_by)
    return workflow.decide_master_role_request(
        current_actor, request_id, RequestStatus(decision.status), decision.notes
    )
