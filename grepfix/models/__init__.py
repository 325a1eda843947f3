"""Models for grepfix."""

from grepfix.models.results import (
    DeleteMotionRequest,
    DeleteRangeRequest,
    ListMode,
    Position,
    ResultEntry,
    ResultList,
    ResultListResponse,
    ResultSlot,
    Tombstone,
)
from grepfix.models.search import CompiledCommand, HighlightResponse, SearchRequest, SearchResponse
from grepfix.models.substitution import (
    FileFailure,
    FileSet,
    FileSetResponse,
    SubstituteRequest,
    SubstituteResponse,
    SubstitutionExpression,
)

__all__ = [
    "CompiledCommand",
    "DeleteMotionRequest",
    "DeleteRangeRequest",
    "FileFailure",
    "FileSet",
    "FileSetResponse",
    "HighlightResponse",
    "ListMode",
    "Position",
    "ResultEntry",
    "ResultList",
    "ResultListResponse",
    "ResultSlot",
    "SearchRequest",
    "SearchResponse",
    "SubstituteRequest",
    "SubstituteResponse",
    "SubstitutionExpression",
    "Tombstone",
]
