"""
SQLModel models for the Academy membership workflow.

This module exports all database models so they register with SQLModel
metadata before tables are created.
"""

from .actor import Actor, ActorRole
from .classroom import Classroom
from .membership import Membership, MembershipRole, MembershipStatus
from .request_status import RequestStatus, DECISIONS
from .timestamps import UTCDateTime, utcnow
from .master_role_request import MasterRoleRequest
from .staff_request import StaffRequest
from .resignation_request import ResignationRequest

__all__ = [
    "Actor",
    "ActorRole",
    "Classroom",
    "Membership",
    "MembershipRole",
    "MembershipStatus",
    "RequestStatus",
    "DECISIONS",
    "UTCDateTime",
    "utcnow",
    "MasterRoleRequest",
    "StaffRequest",
    "ResignationRequest",
]
