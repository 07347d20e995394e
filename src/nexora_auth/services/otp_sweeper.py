"""Periodic sweep of expired OTP records and stale rate-limit windows."""

from __future__ import annotations

import asyncio
import logging

from nexora_auth.security.otp_manager import OTPManager
from nexora_auth.security.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


async def run_otp_sweeper(
    manager: OTPManager,
    interval_seconds: float,
    rate_limiter: RateLimiter | None = None,
) -> None:
    """Drop expired records from *manager* (and *rate_limiter*) forever."""
    logger.info("OTP sweeper started (every %ss)", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        removed = manager.sweep_expired()
        if removed:
            logger.info("OTP sweeper removed %d expired code(s)", removed)
        if rate_limiter is not None:
            stale = rate_limiter.sweep_expired()
            if stale:
                logger.debug("OTP sweeper dropped %d stale rate-limit window(s)", stale)


def start_otp_sweeper(
    manager: OTPManager,
    interval_seconds: float,
    rate_limiter: RateLimiter | None = None,
) -> asyncio.Task:
    return asyncio.create_task(
        run_otp_sweeper(manager, interval_seconds, rate_limiter), name="otp-sweeper"
    )
