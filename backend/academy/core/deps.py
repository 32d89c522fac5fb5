from typing import Dict, Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from membership_core import AnyOf, MasterMentor, Requirement, RoleIs

from .database import get_db
from .errors import Unauthenticated
from .queues import get_queue
from .security import verify_token
from ..models.actor import Actor
from ..services.notifications import QueueNotifier
from ..services.review import ReviewService
from ..services.workflow import WorkflowEngine, deny

security = HTTPBearer(auto_error=False)

# Named capabilities exposed through GET /access/{capability}
CAPABILITIES: Dict[str, Requirement] = {
    "student-portal": RoleIs("student"),
    "mentor-portal": RoleIs("mentor"),
    "admin-panel": RoleIs("admin"),
    "master-dashboard": MasterMentor(),
    "classroom-create": AnyOf(RoleIs("admin"), MasterMentor()),
}


def get_current_actor(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Actor]:
    """Resolve the signed-in actor, or None for anonymous requests.

    A token that is present but invalid is an error, not an anonymous call.
    """
    if credentials is None:
        return None

    actor_id = verify_token(credentials.credentials)
    if actor_id is None:
        raise Unauthenticated("Could not validate credentials")

    try:
        actor_uuid = UUID(actor_id)
    except ValueError:
        raise Unauthenticated("Invalid actor ID format")

    actor = db.get(Actor, actor_uuid)
    if actor is None:
        raise Unauthenticated("Actor not found")

    return actor


def require_actor(actor: Optional[Actor] = Depends(get_current_actor)) -> Actor:
    """Get the current actor, failing with 401 for anonymous requests."""
    if actor is None:
        raise Unauthenticated("Not authenticated")
    return actor


def check_reviewed_by(actor: Optional[Actor], reviewed_by: Optional[UUID]) -> None:
    """A decision body may name its reviewer, but only as the caller."""
    if actor is not None and reviewed_by is not None and reviewed_by != actor.id:
        deny(actor, "reviewedBy must be the authenticated reviewer")


def get_notifier() -> QueueNotifier:
    return QueueNotifier(get_queue())


def get_workflow(
    db: Session = Depends(get_db),
    notifier: QueueNotifier = Depends(get_notifier),
) -> WorkflowEngine:
    return WorkflowEngine(db, notifier)


def get_review(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)
