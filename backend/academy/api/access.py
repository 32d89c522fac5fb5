from typing import Optional

from fastapi import APIRouter, Depends

from membership_core import evaluate_access

from ..core.deps import CAPABILITIES, get_current_actor, require_actor
from ..core.errors import NotFound
from ..models.actor import Actor
from ..schemas.actor import AccessResponse, ActorSummary

router = APIRouter()


@router.get("/access/{capability}", response_model=AccessResponse)
async def check_access(
    capability: str,
    current_actor: Optional[Actor] = Depends(get_current_actor),
):
    """Evaluate the access gate for a named capability."""
    requirement = CAPABILITIES.get(capability)
    if requirement is None:
        raise NotFound(f"Unknown capability: {capability}")

    return AccessResponse(
        capability=capability,
        state=evaluate_access(current_actor, requirement),
        requirement=requirement.describe(),
    )


@router.get("/me", response_model=ActorSummary)
async def read_current_actor(current_actor: Actor = Depends(require_actor)):
    """Get current actor information."""
    return current_actor
