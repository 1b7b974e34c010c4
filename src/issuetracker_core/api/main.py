"""Issue tracker FastAPI application."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from .. import __version__
from ..config import Settings, get_settings
from ..database import build_engine, build_session_factory, init_db
from ..mailer import Mailer
from ..notifications import NotificationDispatcher, Sender
from ..permissions import PermissionTable, load_permissions
from ..ratelimit import RateLimiter
from ..services import build_services
from .errors import register_error_handlers
from .middleware import RateLimitMiddleware
from .routers import healthcheck, issues, projects, reports, tokens, users

logger = logging.getLogger("issuetracker-core")


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
    sender: Optional[Sender] = None,
    permissions: Optional[PermissionTable] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Assemble the application.

    The permission table is loaded here, before the app exists, so a malformed
    permission file stops startup.

    Args:
        settings: Settings (defaults to get_settings())
        engine: Database engine (defaults to one built from settings)
        sender: Email sender (defaults to an SMTP Mailer)
        permissions: Permission table (defaults to loading settings.permissions_file)
        limiter: Rate limiter (defaults to one built from settings)

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    engine = engine or build_engine(settings.database_url, settings)
    permissions = permissions or load_permissions(settings.permissions_file)
    limiter = limiter or RateLimiter.from_settings(settings)
    dispatcher = NotificationDispatcher(
        sender or Mailer.from_settings(settings),
        max_attempts=settings.mail_max_attempts,
        retry_delay=settings.mail_retry_delay,
    )
    services = build_services(build_session_factory(engine), dispatcher, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db(engine)
        sweeper = asyncio.create_task(limiter.run_sweeper(settings.limiter_sweep_interval))
        logger.info(f"Started {settings.app_name} {__version__} ({settings.environment})")
        try:
            yield
        finally:
            sweeper.cancel()
            abandoned = await dispatcher.shutdown(settings.shutdown_timeout)
            if abandoned:
                logger.warning(f"Shut down with {abandoned} undelivered notification(s)")
            await engine.dispose()
            logger.info("Stopped")

    app = FastAPI(
        title="Issue Tracker API",
        description="Projects, issues and the people who work on them",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services
    app.state.permissions = permissions
    app.state.dispatcher = dispatcher
    app.state.limiter = limiter

    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
    )
    register_error_handlers(app)

    app.include_router(healthcheck.router, prefix="/v1")
    app.include_router(users.router, prefix="/v1/users")
    app.include_router(tokens.router, prefix="/v1/tokens")
    app.include_router(projects.router, prefix="/v1/projects")
    app.include_router(issues.router, prefix="/v1/issues")
    app.include_router(reports.router, prefix="/v1/reports")
    return app


def run() -> None:
    """Console entry point."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
