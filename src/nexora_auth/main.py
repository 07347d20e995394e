"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nexora_auth.api.auth import router as auth_router
from nexora_auth.api.diagnostics import router as diagnostics_router
from nexora_auth.config import Settings, settings
from nexora_auth.database.engine import dispose_db, init_db
from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.rate_limiter import RateLimiter
from nexora_auth.services.email_service import EmailService
from nexora_auth.services.otp_sweeper import start_otp_sweeper

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    app_settings: Settings = app.state.settings
    logger.info("Starting %s (%s) …", app_settings.app_name, app_settings.environment)
    await init_db()
    logger.info("Database initialised")

    sweeper = None
    if app_settings.is_production:
        sweeper = start_otp_sweeper(
            app.state.otp_manager,
            app_settings.otp_sweep_interval_seconds,
            rate_limiter=app.state.rate_limiter,
        )

    yield

    logger.info("Shutting down %s …", app_settings.app_name)
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await app.state.otp_manager.wait_for_deliveries()
    await dispose_db()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the application with its own OTP manager and rate limiter."""
    app_settings = app_settings or settings

    deliver = None
    if app_settings.email_delivery_enabled:
        deliver = EmailService(app_settings).send_otp

    app = FastAPI(
        title=app_settings.app_name,
        description="Signup / login with emailed one-time-password verification",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.otp_manager = OTPManager(
        ttl_seconds=app_settings.otp_ttl_seconds,
        cooldown_seconds=app_settings.otp_cooldown_seconds,
        max_attempts=app_settings.otp_max_attempts,
        deliver=deliver,
        diagnostics_enabled=app_settings.diagnostics_enabled,
    )
    app.state.rate_limiter = RateLimiter(
        window_ms=app_settings.rate_limit_window_ms,
        max_requests=app_settings.rate_limit_max_requests,
    )

    app.include_router(auth_router)
    app.include_router(diagnostics_router)

    @app.get("/health")
    async def health_check():
        """Simple liveness probe."""
        return {"status": "healthy", "app": app_settings.app_name}

    return app


app = create_app()
