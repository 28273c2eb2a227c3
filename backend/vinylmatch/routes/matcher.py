"""Matcher routes for component compatibility calculation."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable

import structlog
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from vinylmatch.core.catalog import SQLModelComponentResolver
from vinylmatch.core.matching import MatcherRequest, MatcherResponse, calculate_matching

logger = structlog.get_logger("vinylmatch.routes.matcher")


def create_matcher_router(
    get_db_session: Callable[[], AsyncIterator[SQLModelAsyncSession]],
) -> APIRouter:
    """Create matcher router.

    Args:
        get_db_session: Dependency function for database sessions

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/api/matcher", tags=["matcher"])

    @router.post("/calculate", response_model=MatcherResponse)
    async def calculate_component_matching(
        payload: MatcherRequest,
        session: SQLModelAsyncSession = Depends(get_db_session),
    ) -> MatcherResponse:
        """Calculate compatibility of a tonearm, cartridge and optional SUT/preamp.

        Matching errors are rendered by the MatchingError exception handler.
        """
        logger.debug(
            "Matching requested",
            tonearm_id=payload.tonearm_id,
            cartridge_id=payload.cartridge_id,
            sut_id=payload.sut_id,
            phono_preamp_id=payload.phono_preamp_id,
        )
        return await calculate_matching(payload, SQLModelComponentResolver(session))

    return router
