"""FastAPI dependencies exposing the long-lived security state."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nexora_auth.config import Settings
from nexora_auth.database.engine import get_session
from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.rate_limiter import RateLimiter
from nexora_auth.services.auth_service import AuthService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_otp_manager(request: Request) -> OTPManager:
    return request.app.state.otp_manager


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_auth_service(
    session: AsyncSession = Depends(get_session),
    otp_manager: OTPManager = Depends(get_otp_manager),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> AuthService:
    return AuthService(session, otp_manager, rate_limiter)


def require_diagnostics(
    app_settings: Settings = Depends(get_settings),
    x_debug_secret: str | None = Header(None),
) -> None:
    """Hide diagnostic endpoints unless explicitly unlocked.

    Development exposes them freely; elsewhere the ``X-Debug-Secret``
    header must match the configured ``debug_secret``.
    """
    if app_settings.is_development:
        return
    if app_settings.debug_secret and x_debug_secret == app_settings.debug_secret:
        return
    raise HTTPException(status_code=404, detail="Not found")
