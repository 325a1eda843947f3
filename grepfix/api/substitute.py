"""Cross-file substitution endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from grepfix.dependencies import get_substitution_service, verify_token
from grepfix.exceptions import ValidationError
from grepfix.models.substitution import SubstituteRequest, SubstituteResponse
from grepfix.utils.error_handling import format_exception_for_response

if TYPE_CHECKING:
    from grepfix.services.substitution import SubstitutionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["substitute"], dependencies=[Depends(verify_token)])


@router.post("/substitute", response_model=SubstituteResponse)
async def substitute(
    request: SubstituteRequest,
    service: SubstitutionService = Depends(get_substitution_service),
) -> SubstituteResponse:
    """Apply ``/pattern/replacement/flags`` to every file in the result list."""
    try:
        return service.substitute(request.expression, request.mode)
    except ValidationError as exc:
        logger.warning(
            "Substitution rejected",
            extra={"mode": request.mode.value, "reason": exc.context.get("reason")},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=format_exception_for_response(exc),
        ) from exc
