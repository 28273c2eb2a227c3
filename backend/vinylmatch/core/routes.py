"""Top-level API router."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

from fastapi import APIRouter
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from vinylmatch.routes import general
from vinylmatch.routes.matcher import create_matcher_router


def create_app_router(
    get_db_session: Callable[[], AsyncIterator[SQLModelAsyncSession]],
) -> APIRouter:
    """Combine the general and matcher routers.

    Args:
        get_db_session: Dependency yielding a catalog session per request
    """
    router = APIRouter()
    router.include_router(general.router, tags=["general"])
    router.include_router(create_matcher_router(get_db_session))
    return router
