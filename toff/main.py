"""TOFF — FastAPI Application Factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from toff.admin.router import router as admin_router
from toff.auth.router import router as auth_router
from toff.balance.router import router as balance_router
from toff.common.exceptions import register_exception_handlers
from toff.common.log_config import configure_logging
from toff.common.rate_limit import limiter
from toff.config import Settings, get_settings
from toff.context import ServiceContext
from toff.overtime.router import router as overtime_router
from toff.time_off.router import router as time_off_router
from toff.users.router import router as users_router

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    context: ServiceContext = app.state.context
    await context.startup()
    yield
    await context.shutdown()


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[ServiceContext] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or (context.settings if context else get_settings())
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="TOFF",
        description="Time-off and overtime tracking service",
        version=VERSION,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )
    app.state.context = context or ServiceContext(settings)

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(time_off_router, prefix="/api/v1/time-off", tags=["time-off"])
    app.include_router(balance_router, prefix="/api/v1/time-off", tags=["balance"])
    app.include_router(overtime_router, prefix="/api/v1/overtime", tags=["overtime"])
    app.include_router(users_router, prefix="/api/v1/admin/users", tags=["users"])
    app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])

    return app
