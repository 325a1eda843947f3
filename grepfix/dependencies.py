from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from grepfix.services import container as container_module

if TYPE_CHECKING:
    from grepfix.services.container import ServiceContainer
    from grepfix.services.dispatcher import SearchDispatcher
    from grepfix.services.last_search import LastSearch
    from grepfix.services.result_list import ResultListService
    from grepfix.services.substitution import SubstitutionService

security = HTTPBearer()


def get_container() -> ServiceContainer:
    return container_module.get_container()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> None:
    """Verify the bearer token matches the configured auth token."""
    if credentials.credentials != get_container().settings.auth_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )


async def get_dispatcher() -> SearchDispatcher:
    return get_container().dispatcher


async def get_result_list_service() -> ResultListService:
    return get_container().result_list_service


async def get_substitution_service() -> SubstitutionService:
    return get_container().substitution_service


async def get_last_search() -> LastSearch:
    return get_container().last_search
