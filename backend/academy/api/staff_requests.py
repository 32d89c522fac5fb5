from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core.deps import check_reviewed_by, get_current_actor, get_workflow
from ..models.actor import Actor
from ..models.request_status import RequestStatus
from ..schemas.requests import AdminDecisionUpdate, StaffRequestCreate, StaffRequestResponse
from ..services.workflow import WorkflowEngine

router = APIRouter()


@router.post("", response_model=StaffRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_staff_request(
    request_data: StaffRequestCreate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Ask to join a classroom's staff."""
    return workflow.submit(current_actor, request_data)


@router.patch("/{request_id}/status", response_model=StaffRequestResponse)
async def decide_staff_request(
    request_id: UUID,
    decision: AdminDecisionUpdate,
    workflow: WorkflowEngine = Depends(get_workflow),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Approve or reject a staff request (classroom owner only)."""
    check_reviewed_by(current_actor, decision.reviewed_by)
    return workflow.decide_staff_request(
        current_actor, request_id, RequestStatus(decision.status), decision.notes
    )
