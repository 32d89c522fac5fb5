import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .gate import GateState, Requirement, evaluate_access

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Any]], None]


class SessionEvent(str, Enum):
    """Transitions broadcast by a session provider."""

    LOGIN = "login"
    LOGOUT = "logout"
    RESOLVING = "resolving"


class ObserverRegistry:
    """Callback registry keyed by session event.

    ``subscribe`` returns a callable that removes the subscription, so
    callers never need to keep a handle on the registry itself.
    """

    def __init__(self):
        self._listeners: Dict[SessionEvent, List[Listener]] = {
            event: [] for event in SessionEvent
        }

    def subscribe(self, event: SessionEvent, callback: Listener) -> Callable[[], None]:
        listeners = self._listeners[SessionEvent(event)]
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def publish(self, event: SessionEvent, actor: Optional[Any]) -> None:
        # Copy so a listener may unsubscribe while being notified
        for callback in list(self._listeners[SessionEvent(event)]):
            callback(actor)

    def listener_count(self, event: SessionEvent) -> int:
        return len(self._listeners[SessionEvent(event)])


class LocalSession:
    """In-process session provider.

    Holds the current actor and pushes every SessionEvent through an
    injected ObserverRegistry. The backend API resolves actors from bearer
    tokens instead; this object serves UI-side and test callers.
    """

    def __init__(self, registry: Optional[ObserverRegistry] = None):
        self.registry = registry or ObserverRegistry()
        self._actor: Optional[Any] = None
        self.resolving = False

    def current_actor(self) -> Optional[Any]:
        return self._actor

    def subscribe(self, event: SessionEvent, callback: Listener) -> Callable[[], None]:
        return self.registry.subscribe(event, callback)

    def begin_resolving(self) -> None:
        """Mark the actor as being resolved (e.g. a token refresh in flight).

        Bound gates drop to LOADING until the next login or logout.
        """
        self.resolving = True
        logger.debug(f"Session resolving actor {getattr(self._actor, 'id', None)}")
        self.registry.publish(SessionEvent.RESOLVING, self._actor)

    def login(self, actor: Any) -> None:
        if actor is None:
            raise ValueError("login requires an actor")
        self._actor = actor
        self.resolving = False
        logger.info(f"Session login for actor {getattr(actor, 'id', None)}")
        self.registry.publish(SessionEvent.LOGIN, actor)

    def logout(self) -> None:
        previous = self._actor
        self._actor = None
        self.resolving = False
        logger.info(f"Session logout for actor {getattr(previous, 'id', None)}")
        self.registry.publish(SessionEvent.LOGOUT, None)


class WatchedGate:
    """Access gate bound to a session that re-evaluates on every push.

    Args:
        session: Anything with ``current_actor()``, ``subscribe(event, cb)``
            and an optional ``resolving`` attribute.
        requirement: What the protected capability demands.
        on_change: Called with the new GateState whenever it changes.
    """

    def __init__(
        self,
        session: Any,
        requirement: Optional[Requirement],
        on_change: Optional[Callable[[GateState], None]] = None,
    ):
        self.session = session
        self.requirement = requirement
        self.on_change = on_change
        self.state = self._evaluate()
        self._unsubscribers = [
            session.subscribe(event, self._handle_event) for event in SessionEvent
        ]

    def _evaluate(self) -> GateState:
        return evaluate_access(
            self.session.current_actor(),
            self.requirement,
            resolving=getattr(self.session, "resolving", False),
        )

    def _handle_event(self, _actor: Optional[Any]) -> None:
        new_state = self._evaluate()
        if new_state != self.state:
            logger.debug(f"Gate state changed: {self.state.value} -> {new_state.value}")
            self.state = new_state
            if self.on_change:
                self.on_change(new_state)

    @property
    def allowed(self) -> bool:
        return self.state == GateState.ALLOWED

    def close(self) -> None:
        """Stop listening to session events."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
