"""FastAPI application factory and server entry point."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from vinylmatch import __version__
from vinylmatch.core.config import Settings, get_settings, reload_settings
from vinylmatch.core.database import (
    create_database_engine,
    create_session_factory,
    init_database,
)
from vinylmatch.core.logging import setup_logging
from vinylmatch.core.matching import MatchingError, get_matching_config
from vinylmatch.core.metrics import setup_metrics
from vinylmatch.core.middleware import TracingMiddleware
from vinylmatch.core.routes import create_app_router
from vinylmatch.core.tracing import get_trace_id

logger = structlog.get_logger("vinylmatch.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the catalog schema on startup and release the engine on shutdown."""
    settings = get_settings()
    await init_database(app.state.engine)

    config = get_matching_config()
    logger.info(
        "vinylmatch started",
        version=__version__,
        env=settings.env,
        database=settings.database_url,
        resonance_band_hz=[config.resonance_min_hz, config.resonance_max_hz],
        load_multiplier=config.load_multiplier,
        mm_input_window_mv=[config.mm_input_min_mv, config.mm_input_max_mv],
    )

    try:
        yield
    finally:
        await app.state.engine.dispose()
        logger.info("vinylmatch stopped")


async def matching_error_handler(request: Request, exc: MatchingError) -> JSONResponse:
    """Render a MatchingError with its status code and the request's trace id."""
    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.to_dict(), "trace_id": get_trace_id()},
    )


def _configure_logging(settings: Settings) -> None:
    setup_logging(
        debug=settings.is_debug,
        logs_dir=settings.logs_dir if settings.log_to_file else None,
        # In development the debug default applies
        log_level=None if settings.is_debug else settings.log_level,
    )


def create_app() -> FastAPI:
    """Build the API application from the current settings."""
    settings = get_settings()
    _configure_logging(settings)

    app = FastAPI(
        title="vinylmatch",
        description="Compatibility matching for vintage turntable components",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.engine = create_database_engine(settings.database_file, echo=settings.is_debug)
    session_factory = create_session_factory(app.state.engine)

    async def get_db_session() -> AsyncIterator[SQLModelAsyncSession]:
        async with session_factory() as session:
            yield session

    app.add_exception_handler(MatchingError, matching_error_handler)  # type: ignore[arg-type]
    app.add_middleware(TracingMiddleware)

    # Behind a base URL the root app owns /metrics
    if not settings.host_base_url:
        setup_metrics(app, __version__)

    app.include_router(create_app_router(get_db_session))
    return app


def mount_under_base_url(app: FastAPI, base_url: str) -> FastAPI:
    """Serve ``app`` under ``base_url``, keeping /health and /metrics at the root."""
    # Mounted apps get no lifespan events of their own
    root = FastAPI(lifespan=lambda _: lifespan(app))
    root.add_middleware(TracingMiddleware)
    setup_metrics(root, __version__)

    @root.get("/health")
    async def root_health() -> JSONResponse:
        return JSONResponse({"status": "healthy", "trace_id": get_trace_id()})

    root.mount(base_url, app)
    logger.info("Application mounted", base_url=base_url)
    return root


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = reload_settings()
    app = create_app()
    if settings.host_base_url:
        app = mount_under_base_url(app, settings.host_base_url)

    logger.info(
        "Starting uvicorn",
        host=settings.host_bind_address,
        port=settings.host_port,
    )
    # structlog owns logging configuration
    uvicorn.run(app, host=settings.host_bind_address, port=settings.host_port, log_config=None)


if __name__ == "__main__":
    main()
