from enum import Enum

from sqlalchemy import Column, Enum as SAEnum


class RequestStatus(str, Enum):
    """Lifecycle of every workflow request: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


DECISIONS = (RequestStatus.APPROVED, RequestStatus.REJECTED)


def enum_column(enum_cls, default) -> Column:
    """Enum column persisted by value, so partial indexes can match on it."""
    return Column(
        SAEnum(
            enum_cls,
            values_callable=lambda members: [member.value for member in members],
            native_enum=False,
            length=16,
        ),
        nullable=False,
        default=default,
        index=True,
    )
