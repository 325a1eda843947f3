"""Result list endpoints: inspect, delete entries, populate the working set."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from grepfix.dependencies import get_result_list_service, get_substitution_service, verify_token
from grepfix.exceptions import ValidationError
from grepfix.models.results import (
    DeleteMotionRequest,
    DeleteRangeRequest,
    ListMode,
    ResultListResponse,
)
from grepfix.models.substitution import FileSetResponse
from grepfix.utils.error_handling import format_exception_for_response

if TYPE_CHECKING:
    from grepfix.services.result_list import ResultListService
    from grepfix.services.substitution import SubstitutionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/results",
    tags=["results"],
    dependencies=[Depends(verify_token)],
)


def _bad_request(exc: ValidationError, mode: ListMode) -> HTTPException:
    logger.warning(
        "Invalid result list request",
        extra={"mode": mode.value, "reason": exc.context.get("reason"), "error": str(exc)},
    )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=format_exception_for_response(exc),
    )


@router.get("/{mode}", response_model=ResultListResponse)
async def get_results(
    mode: ListMode,
    service: ResultListService = Depends(get_result_list_service),
) -> ResultListResponse:
    return ResultListResponse.from_list(mode, service.get(mode))


@router.post("/{mode}/delete", response_model=ResultListResponse)
async def delete_range(
    mode: ListMode,
    request: DeleteRangeRequest,
    service: ResultListService = Depends(get_result_list_service),
) -> ResultListResponse:
    """Delete an inclusive range of entries (e.g. a visual selection)."""
    try:
        updated = service.delete(mode, request.first, request.last)
    except ValidationError as exc:
        raise _bad_request(exc, mode) from exc
    return ResultListResponse.from_list(mode, updated)


@router.post("/{mode}/delete-motion", response_model=ResultListResponse)
async def delete_motion(
    mode: ListMode,
    request: DeleteMotionRequest,
    service: ResultListService = Depends(get_result_list_service),
) -> ResultListResponse:
    """Delete the entries covered by a motion."""
    try:
        updated = service.delete_motion(mode, request.start, request.end)
    except ValidationError as exc:
        raise _bad_request(exc, mode) from exc
    return ResultListResponse.from_list(mode, updated)


@router.post("/{mode}/args", response_model=FileSetResponse)
async def populate_working_set(
    mode: ListMode,
    service: SubstitutionService = Depends(get_substitution_service),
) -> FileSetResponse:
    """Install the list's distinct files as the working set."""
    try:
        file_set = service.derive_working_set(mode)
    except ValidationError as exc:
        raise _bad_request(exc, mode) from exc
    return FileSetResponse(mode=mode, files=list(file_set.files), escaped=file_set.escaped)
