"""LocumHub — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from locumhub.auth.router import router as auth_router
from locumhub.business_support.router import router as business_support_router
from locumhub.common.exceptions import register_exception_handlers
from locumhub.common.rate_limit import limiter
from locumhub.compliance.router import router as compliance_router
from locumhub.config import settings
from locumhub.dashboard.router import router as dashboard_router
from locumhub.database import engine
from locumhub.documents.router import router as documents_router
from locumhub.notifications.router import router as notifications_router
from locumhub.onboarding.router import router as onboarding_router
from locumhub.rate_cards.router import router as rate_cards_router
from locumhub.registrations.router import router as registrations_router
from locumhub.shifts.router import router as shifts_router
from locumhub.timesheets.router import router as timesheets_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("LocumHub starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="LocumHub",
        description="Locum staffing marketplace: registrations, onboarding, compliance, allocation, timesheets",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

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
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth")
    app.include_router(registrations_router, prefix="/api/v1/registrations")
    app.include_router(onboarding_router, prefix="/api/v1/onboarding")
    app.include_router(documents_router, prefix="/api/v1/documents")
    app.include_router(compliance_router, prefix="/api/v1/compliance")
    app.include_router(notifications_router, prefix="/api/v1/notifications")
    app.include_router(timesheets_router, prefix="/api/v1/timesheets")
    app.include_router(rate_cards_router, prefix="/api/v1/rate-cards")
    app.include_router(shifts_router, prefix="/api/v1/shifts")
    app.include_router(business_support_router, prefix="/api/v1/business-support")
    app.include_router(dashboard_router, prefix="/api/v1/dashboard")

    return app


app = create_app()
