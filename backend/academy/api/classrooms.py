from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends

from ..core.deps import get_current_actor, get_review
from ..models.actor import Actor
from ..schemas.requests import (
    MembershipResponse,
    ResignationRequestResponse,
    StaffRequestResponse,
)
from ..schemas.review import ReviewBoardResponse
from ..services.review import BoardKind, ReviewService

router = APIRouter()

ClassroomRequest = Union[MembershipResponse, StaffRequestResponse, ResignationRequestResponse]


@router.get("/{classroom_id}/requests", response_model=ReviewBoardResponse[ClassroomRequest])
async def classroom_requests(
    classroom_id: UUID,
    kind: BoardKind = BoardKind.ENROLLMENT,
    search: Optional[str] = None,
    review: ReviewService = Depends(get_review),
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Review board for one classroom and request kind."""
    return review.classroom_board(current_actor, classroom_id, kind, search)
