from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core.deps import check_reviewed_by, get_current_actor, get_workflow
from ..models.actor import Actor
from ..models.request_status import RequestStatus
from ..schemas.requests import (
    MasterDecisionUpdate,
    ResignationRequestCreate,
    ResignationRequestResponse,
)
from ..services.workflow import WorkflowEngine

router = APIRouter()


@router.post("", response_model=ResignationRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_resignation_request(
    request_data: ResignationRequestCreate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Ask to leave a classroom's staff."""
    return workflow.submit(current_actor, request_data)


@router.patch("/{request_id}/status", response_model=ResignationRequestResponse)
async def decide_resignation_request(
    request_id: UUID,
    decision: MasterDecisionUpdate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Approve or reject a resignation; approval removes the staff membership."""
    check_reviewed_by(current_actor, decision.reviewed_by)
    return workflow.decide_resignation_request(
        current_actor, request_id, RequestStatus(decision.status), decision.notes
    )
