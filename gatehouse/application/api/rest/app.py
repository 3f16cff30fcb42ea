import logging
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gatehouse.application.api.v1.errors import map_error
from gatehouse.application.api.v1.routes import auth, health
from gatehouse.application.di import create_container
from gatehouse.config import Config, configure_logging
from gatehouse.domain.shared.error import GatehouseError, TokenSigningFailedError
from gatehouse.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.dishka_container.close()


def create_app(container: AsyncContainer | None = None, config: Config | None = None) -> FastAPI:
    """Create FastAPI application.

    Used by uvicorn as an app factory. Logfire must be configured before
    this is called (the CLI does it, tests do it in conftest.py).

    Raises:
        TokenSigningFailedError: If no JWT signing secret is configured
    """
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    # Configure logging early
    configure_logging(config.logging)
    logger.info("Starting Gatehouse: %s v%s", config.server.name, config.server.version)

    # Fail fast rather than on the first login
    if not config.auth.jwt.secret:
        raise TokenSigningFailedError(
            "JWT signing secret is not configured (set GATEHOUSE_AUTH__JWT__SECRET)",
            code="token_signing_failed",
        )

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app_instance)

    # Setup dependency injection
    setup_dishka(container or create_container(config), app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(auth.router)

    # Global error handler - maps domain and infrastructure errors to HTTP responses
    @app_instance.exception_handler(GatehouseError)
    async def gatehouse_error_handler(request: Request, exc: GatehouseError):
        http_exc = map_error(exc)
        return JSONResponse(
            status_code=http_exc.status_code,
            content=http_exc.detail,
            headers=http_exc.headers,
        )

    # Global exception handler - logs all unhandled exceptions
    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app_instance
