from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..models.actor import ActorRole
from membership_core import GateState


class ActorSummary(BaseModel):
    """Applicant/reviewer display fields."""

    id: UUID
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: ActorRole
    is_master: bool

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class AccessResponse(BaseModel):
    """Access gate verdict for one capability."""

    capability: str
    state: GateState
    requirement: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
