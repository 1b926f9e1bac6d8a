"""FastAPI application entry point."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from foundryhub import __version__
from foundryhub.app.api.v1 import router as api_v1_router
from foundryhub.app.api.v1.dependencies import Services
from foundryhub.app.api.v1.schemas import SystemHealthResponse
from foundryhub.app.config import Settings, get_settings
from foundryhub.app.container import ServiceContainer, build_services
from foundryhub.app.logging import setup_logging
from foundryhub.app.middleware import RequestIdMiddleware
from foundryhub.core.errors import FoundryHubError, InternalError
from foundryhub.core.logging_schema import LogEvent
from foundryhub.infra import Database
from foundryhub.services import startup_recovery

logger = logging.getLogger(__name__)


async def open_services(settings: Settings) -> ServiceContainer:
    """Connect the database and wire services from settings."""
    db = Database(settings.database.url, settings.database.echo)
    await db.connect(create_tables=settings.database.create_tables)
    return build_services(settings, db)


def create_app(
    settings: Settings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    """Build the application.

    When services are passed in they are used as-is and the lifespan neither
    builds nor closes them.
    """
    settings = settings or (services.settings if services else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        owns_services = getattr(app.state, "services", None) is None
        if owns_services:
            setup_logging(
                settings.logging.level,
                settings.logging.json_format,
                settings.logging.service_name,
            )
            logger.info(
                "Configuration loaded",
                extra={
                    "engine_backend": settings.engine.backend,
                    "data_root": settings.storage.data_root,
                    "engine_data_root": settings.storage.engine_data_root,
                    "database_url": settings.database.url.split("@")[-1],
                },
            )
            app.state.services = await open_services(settings)
            if settings.recovery.on_startup:
                await startup_recovery(
                    app.state.services.repository, app.state.services.instances
                )

        logger.info("foundryhub %s started", __version__, extra={"event": LogEvent.APP_STARTED})
        yield

        if owns_services:
            await app.state.services.close()
            app.state.services = None
        logger.info("foundryhub stopped", extra={"event": LogEvent.APP_STOPPED})

    app = FastAPI(
        title="foundryhub",
        description="Foundry VTT instance manager",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_v1_router)

    @app.exception_handler(FoundryHubError)
    async def foundryhub_error_handler(
        _request: Request, exc: FoundryHubError
    ) -> JSONResponse:
        """Handle FoundryHubError exceptions and return standardized error responses."""
        if not exc.is_client_error:
            logger.error("Request failed: %s", exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions and return standardized error responses."""
        logger.exception("Unexpected error: %s", exc)
        error = InternalError()
        return JSONResponse(
            status_code=error.status_code,
            content=error.to_response().model_dump(),
        )

    @app.get("/health", response_model=SystemHealthResponse)
    async def health_check(services: Services) -> JSONResponse:
        """Database and container engine reachability."""
        db_up, engine_up = await asyncio.gather(
            services.db.ping(), services.engine.ping()
        )
        body = SystemHealthResponse(
            status="ok" if db_up and engine_up else "degraded",
            database="up" if db_up else "down",
            engine="up" if engine_up else "down",
        )
        return JSONResponse(
            status_code=200 if body.status == "ok" else 503,
            content=body.model_dump(),
        )

    return app
