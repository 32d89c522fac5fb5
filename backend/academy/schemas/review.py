from typing import Dict, Generic, List, TypeVar
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ReviewBoardResponse(BaseModel, Generic[T]):
    """Requests of one kind split into pending / approved / rejected."""

    kind: str
    pending: List[T]
    approved: List[T]
    rejected: List[T]
    counts: Dict[str, int]

    class Config:
        alias_generator = to_camel
        populate_by_name = True
