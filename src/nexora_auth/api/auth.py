"""Authentication router — signup, login and OTP verification.

Endpoints
---------
POST /auth/signup       → create account, issue OTP
POST /auth/login        → check password, issue OTP
POST /auth/otp/verify   → validate OTP, return the user
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from nexora_auth.api.dependencies import get_auth_service, get_settings
from nexora_auth.config import Settings
from nexora_auth.errors import AuthError, OTPCooldownError, OTPIssueError, RateLimitedError
from nexora_auth.models.user import ROLE_ADMIN
from nexora_auth.services.auth_service import AuthChallenge, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Response / request models ────────────────────────────

class CredentialsRequest(BaseModel):
    email: str = ""
    password: str = ""


class ChallengeResponse(BaseModel):
    success: bool = True
    requires_otp: bool = True
    email: str
    is_login: bool
    dev_code: str | None = None


class OTPVerifyRequest(BaseModel):
    email: str = ""
    code: str = ""
    is_login: bool = False


class UserInfo(BaseModel):
    id: int
    email: str
    role: str
    is_verified: bool


class OTPVerifyResponse(BaseModel):
    verified: bool
    user: UserInfo
    redirect_to: str


# ── Error translation ────────────────────────────────────

def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, OTPCooldownError):
        return HTTPException(
            status_code=429,
            detail=str(exc),
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after_seconds)} if exc.retry_after_seconds else None
        return HTTPException(status_code=exc.status_code, detail=exc.message, headers=headers)
    if isinstance(exc, AuthError):
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    logger.error("OTP issuance failed: %s", exc)
    return HTTPException(status_code=500, detail="Failed to send OTP")


def _challenge_response(challenge: AuthChallenge, app_settings: Settings) -> ChallengeResponse:
    return ChallengeResponse(
        email=challenge.email,
        is_login=challenge.is_login,
        dev_code=challenge.code if app_settings.is_development else None,
    )


# ── Endpoints ────────────────────────────────────────────

@router.post("/signup", response_model=ChallengeResponse, response_model_exclude_none=True)
async def signup(
    body: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
    app_settings: Settings = Depends(get_settings),
):
    """Register a new customer and send them a verification code."""
    try:
        challenge = await service.signup(body.email, body.password)
    except (AuthError, OTPCooldownError, OTPIssueError) as exc:
        raise _http_error(exc) from exc
    return _challenge_response(challenge, app_settings)


@router.post("/login", response_model=ChallengeResponse, response_model_exclude_none=True)
async def login(
    body: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
    app_settings: Settings = Depends(get_settings),
):
    """Check credentials and send a sign-in code."""
    try:
        challenge = await service.login(body.email, body.password)
    except (AuthError, OTPCooldownError, OTPIssueError) as exc:
        raise _http_error(exc) from exc
    return _challenge_response(challenge, app_settings)


@router.post("/otp/verify", response_model=OTPVerifyResponse)
async def verify_otp(
    body: OTPVerifyRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Validate a code; the failure message never says why it was rejected."""
    try:
        user = await service.verify_otp(body.email, body.code, is_login=body.is_login)
    except AuthError as exc:
        raise _http_error(exc) from exc

    return OTPVerifyResponse(
        verified=True,
        user=UserInfo(id=user.id, email=user.email, role=user.role, is_verified=user.is_verified),
        redirect_to="/admin" if user.role == ROLE_ADMIN else "/dashboard",
    )
