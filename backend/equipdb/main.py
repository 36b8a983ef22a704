# backend/equipdb/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .database import Database
from .errors import install_exception_handlers
from .logging_config import configure_logging
from .middleware import (
    AccessLogMiddleware,
    RateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)
from .security import set_token_url
from .utils.timeutils import utcnow

from .apps.accounts.router_public import router as accounts_public_router
from .apps.accounts.router_users import router as users_router
from .apps.clients.router import router as clients_router
from .apps.stats.router import router as stats_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the application. Tests pass their own settings and an
    in-memory Database; production reads everything from the environment.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.auto_create_schema:
            database.create_all()
        logger.info(
            "equipdb started",
            extra={"environment": settings.environment, "api_prefix": settings.api_prefix},
        )
        try:
            yield
        finally:
            database.dispose()
            logger.info("equipdb stopped")

    app = FastAPI(title="Equipment Service API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.rate_limiter = RateLimiter(
        settings.rate_limit_window_sec, settings.rate_limit_max
    )

    # Last added runs first: CORS, then rate limit, headers, access log, errors.
    app.add_middleware(UnhandledErrorMiddleware, production=settings.is_production)
    app.add_middleware(AccessLogMiddleware, production=settings.is_production)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app, production=settings.is_production)

    prefix = settings.api_prefix
    set_token_url(prefix)

    @app.get(f"{prefix}/healthz", tags=["health"])
    def healthz():
        return {"status": "ok", "timestamp": utcnow().isoformat()}

    app.include_router(accounts_public_router, prefix=prefix)
    app.include_router(users_router, prefix=prefix)
    app.include_router(clients_router, prefix=prefix)
    app.include_router(stats_router, prefix=prefix)

    return app


app = create_app()
