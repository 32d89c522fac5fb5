# libs/membership_core/membership_core/__init__.py

from .gate import (
    GateState,
    Principal,
    Requirement,
    RoleIs,
    RoleIn,
    MasterMentor,
    SignedIn,
    AnyOf,
    evaluate_access,
)
from .session import SessionEvent, ObserverRegistry, LocalSession, WatchedGate
from .review import ReviewBoard, build_board, matches_search

__all__ = [
    "GateState",
    "Principal",
    "Requirement",
    "RoleIs",
    "RoleIn",
    "MasterMentor",
    "SignedIn",
    "AnyOf",
    "evaluate_access",
    "SessionEvent",
    "ObserverRegistry",
    "LocalSession",
    "WatchedGate",
    "ReviewBoard",
    "build_board",
    "matches_search",
]
