from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

APPROVED_STATUSES = ("approved", "active")
REJECTED_STATUSES = ("rejected",)
PENDING_STATUSES = ("pending",)


@dataclass
class ReviewBoard:
    """Requests partitioned into the three buckets a reviewer works from."""

    pending: List[Any] = field(default_factory=list)
    approved: List[Any] = field(default_factory=list)
    rejected: List[Any] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "pending": len(self.pending),
            "approved": len(self.approved),
            "rejected": len(self.rejected),
        }

    @property
    def total(self) -> int:
        return len(self.pending) + len(self.approved) + len(self.rejected)


def matches_search(fields: Iterable[Optional[str]], term: Optional[str]) -> bool:
    """Case-insensitive substring match of ``term`` against any field.

    An empty or missing term matches everything; missing fields never match.
    """
    if not term or not term.strip():
        return True

    needle = term.strip().lower()
    return any(value and needle in value.lower() for value in fields)


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def build_board(
    items: Sequence[Any],
    status_of: Callable[[Any], Any],
    search: Optional[str] = None,
    search_fields_of: Optional[Callable[[Any], Iterable[Optional[str]]]] = None,
) -> ReviewBoard:
    """
    Partition ``items`` into pending / approved / rejected buckets.

    Input order is preserved inside each bucket, so callers pass items
    already sorted newest first.

    Args:
        items: Requests or memberships to partition.
        status_of: Returns the status of an item; memberships count
            ``active`` as approved.
        search: Optional free-text filter.
        search_fields_of: Returns the display fields the filter applies to.
            Required when ``search`` is given.
    """
    if search and search_fields_of is None:
        raise ValueError("search_fields_of is required when filtering")

    board = ReviewBoard()
    for item in items:
        if search and not matches_search(search_fields_of(item), search):
            continue

        status = _status_value(status_of(item))
        if status in PENDING_STATUSES:
            board.pending.append(item)
        elif status in APPROVED_STATUSES:
            board.approved.append(item)
        elif status in REJECTED_STATUSES:
            board.rejected.append(item)
        else:
            raise ValueError(f"Unknown status: {status}")

    return board
