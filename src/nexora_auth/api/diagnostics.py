"""Diagnostic endpoints for non-production tooling.

Every route here is hidden (404) unless diagnostics are enabled; see
:func:`nexora_auth.api.dependencies.require_diagnostics`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from nexora_auth.api.dependencies import (
    get_otp_manager,
    get_rate_limiter,
    get_settings,
    require_diagnostics,
)
from nexora_auth.config import Settings
from nexora_auth.errors import DiagnosticsDisabledError, OTPError
from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.rate_limiter import RateLimiter
from nexora_auth.services.auth_service import normalize_email

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/debug",
    tags=["diagnostics"],
    dependencies=[Depends(require_diagnostics)],
)


class SelfTestRequest(BaseModel):
    email: str


@router.get("/otp/{email}")
async def otp_status(email: str, otp_manager: OTPManager = Depends(get_otp_manager)) -> dict:
    """Report whether a code is outstanding for *email* and how long it lives."""
    try:
        status = otp_manager.status(normalize_email(email))
    except DiagnosticsDisabledError as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc
    return asdict(status)


@router.post("/otp/self-test")
async def otp_self_test(
    body: SelfTestRequest, otp_manager: OTPManager = Depends(get_otp_manager)
) -> dict:
    """Issue and immediately verify a code to exercise the OTP path."""
    try:
        result = await otp_manager.self_test(normalize_email(body.email))
    except DiagnosticsDisabledError as exc:
        raise HTTPException(status_code=404, detail="Not found") from exc
    except OTPError as exc:
        logger.warning("OTP self-test failed: %s", exc)
        return {"success": False, "error": str(exc)}
    result["final_status"] = asdict(result["final_status"])
    return result


@router.get("/rate-limit")
async def rate_limit_remaining(
    key: str = Query(..., description="Limiter key, e.g. login:alice@example.com"),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict:
    return {
        "key": key,
        "remaining": limiter.remaining(key),
        "max_requests": limiter.max_requests,
        "retry_after_seconds": limiter.retry_after(key),
    }


@router.get("/env")
async def environment(app_settings: Settings = Depends(get_settings)) -> dict:
    """Summarise environment flags without exposing secrets."""
    return {
        "environment": {
            "name": app_settings.environment,
            "is_development": app_settings.is_development,
            "is_production": app_settings.is_production,
        },
        "email": {
            "delivery_enabled": app_settings.email_delivery_enabled,
            "smtp_host": app_settings.smtp_host,
            "smtp_credentials_set": bool(app_settings.smtp_username),
            "email_from": app_settings.email_from,
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
