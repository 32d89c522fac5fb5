import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from redis.exceptions import RedisError
from rq import Queue

from ..core.config import settings
from ..worker_tasks import notify_decision

logger = logging.getLogger(__name__)


@dataclass
class DecisionEvent:
    """A committed decision, as seen by notification consumers."""

    kind: str
    request_id: str
    status: str
    reviewer_id: str
    applicant_id: str
    applicant_email: Optional[str] = None
    applicant_name: Optional[str] = None
    classroom_id: Optional[str] = None
    notes: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


class QueueNotifier:
    """Enqueue decision notifications on the RQ notification queue.

    A decision is already committed when this runs, so a Redis outage is
    logged and the decision stands.
    """

    def __init__(self, queue: Queue):
        self.queue = queue

    def request_decided(self, event: DecisionEvent) -> None:
        if not settings.NOTIFICATIONS_ENABLED:
            return
        try:
            self.queue.enqueue(notify_decision, event.to_payload())
        except RedisError as e:
            logger.error(f"Failed to enqueue notification for {event.kind} {event.request_id}: {e}")
