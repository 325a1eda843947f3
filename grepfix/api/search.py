"""Search and highlight endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from grepfix.dependencies import get_dispatcher, get_last_search, verify_token
from grepfix.exceptions import SearchError
from grepfix.models.search import HighlightResponse, SearchRequest, SearchResponse
from grepfix.utils.error_handling import format_exception_for_response

if TYPE_CHECKING:
    from grepfix.services.dispatcher import SearchDispatcher
    from grepfix.services.last_search import LastSearch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["search"], dependencies=[Depends(verify_token)])


@router.post("/search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    dispatcher: SearchDispatcher = Depends(get_dispatcher),
) -> SearchResponse:
    """Run the search program and populate the requested result list."""
    try:
        return await dispatcher.search(request)
    except SearchError as exc:
        logger.exception(
            "Search failed",
            extra={"mode": request.mode.value, **exc.context},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=format_exception_for_response(exc),
        ) from exc


@router.get("/highlight", response_model=HighlightResponse)
async def get_highlight(last_search: LastSearch = Depends(get_last_search)) -> HighlightResponse:
    """Current last-search pattern without clearing the dirty flag."""
    return HighlightResponse(
        pattern=last_search.pattern,
        enabled=last_search.highlight_enabled,
        dirty=last_search.dirty,
    )


@router.post("/highlight/apply", response_model=HighlightResponse)
async def apply_highlight(last_search: LastSearch = Depends(get_last_search)) -> HighlightResponse:
    """Hand the pattern to the highlighter and mark the state clean."""
    pattern = last_search.consume()
    return HighlightResponse(pattern=pattern, enabled=last_search.highlight_enabled, dirty=False)
