import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

logger = logging.getLogger(__name__)

ROLES = ("student", "mentor", "admin")


class GateState(str, Enum):
    """Terminal presentation states of the access gate."""

    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    ALLOWED = "allowed"


@dataclass(frozen=True)
class Principal:
    """Minimal view of an actor as seen by the gate.

    Anything exposing ``id``, ``role`` and ``is_master`` attributes can be
    evaluated; this class exists for callers that hold plain values.
    """

    id: Any
    role: str
    is_master: bool = False


class Requirement:
    """Base class for access requirements.

    Subclasses implement ``is_met`` for a signed-in actor. The gate handles
    the missing-actor case before ``is_met`` is consulted.
    """

    def is_met(self, actor: Any) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class SignedIn(Requirement):
    """Any authenticated actor."""

    def is_met(self, actor: Any) -> bool:
        return True

    def describe(self) -> str:
        return "signed in"


@dataclass(frozen=True)
class RoleIs(Requirement):
    """Exact role match."""

    role: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role}")

    def is_met(self, actor: Any) -> bool:
        return _role_of(actor) == self.role

    def describe(self) -> str:
        return f"{self.role} access"


@dataclass(frozen=True)
class RoleIn(Requirement):
    """Role-set membership, e.g. ``RoleIn(("mentor", "admin"))``."""

    roles: Tuple[str, ...]

    def __post_init__(self):
        unknown = [role for role in self.roles if role not in ROLES]
        if unknown:
            raise ValueError(f"Unknown roles: {', '.join(unknown)}")
        # Accept any iterable at construction time but keep a hashable tuple.
        object.__setattr__(self, "roles", tuple(self.roles))

    def is_met(self, actor: Any) -> bool:
        return _role_of(actor) in self.roles

    def describe(self) -> str:
        return f"one of the following roles: {', '.join(self.roles)}"


@dataclass(frozen=True)
class MasterMentor(Requirement):
    """Compound requirement: role is mentor AND the master flag is set."""

    def is_met(self, actor: Any) -> bool:
        return _role_of(actor) == "mentor" and bool(getattr(actor, "is_master", False))

    def describe(self) -> str:
        return "master mentor access"


class AnyOf(Requirement):
    """Met when at least one of the wrapped requirements is met."""

    def __init__(self, *requirements: Requirement):
        if not requirements:
            raise ValueError("AnyOf needs at least one requirement")
        self.requirements: Tuple[Requirement, ...] = tuple(requirements)

    def is_met(self, actor: Any) -> bool:
        return any(requirement.is_met(actor) for requirement in self.requirements)

    def describe(self) -> str:
        return " or ".join(requirement.describe() for requirement in self.requirements)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AnyOf) and self.requirements == other.requirements

    def __hash__(self) -> int:
        return hash(("any_of", self.requirements))

    def __repr__(self) -> str:
        return f"AnyOf{self.requirements!r}"


def _role_of(actor: Any) -> Optional[str]:
    role = getattr(actor, "role", None)
    # str-valued enums compare equal to their value, but normalise anyway
    return getattr(role, "value", role)


def evaluate_access(
    actor: Optional[Any],
    requirement: Optional[Requirement],
    resolving: bool = False,
) -> GateState:
    """
    Decide what a protected capability should render for ``actor``.

    Args:
        actor: The current actor, or None when nobody is signed in.
        requirement: What the capability demands. None means public.
        resolving: True while the session provider is still resolving the
            actor; the gate answers LOADING instead of guessing.

    Returns:
        One of the four GateState values.
    """
    if resolving:
        return GateState.LOADING

    if requirement is None:
        return GateState.ALLOWED

    if actor is None:
        return GateState.UNAUTHENTICATED

    if requirement.is_met(actor):
        return GateState.ALLOWED

    logger.debug(
        f"Access denied for actor {getattr(actor, 'id', None)}: requires {requirement.describe()}"
    )
    return GateState.FORBIDDEN
