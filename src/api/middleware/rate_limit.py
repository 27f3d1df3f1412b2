# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Rate limits are applied per client (user ID when authenticated, IP address
otherwise). The default limit comes from RATE_LIMIT_REQUESTS_PER_MINUTE;
write endpoints add a tighter limit with the rate_limit() decorator.

Example:
    @router.post("/{class_id}/batch-transfer")
    @rate_limit(RATE_LIMIT_TRANSFER)
    async def batch_transfer(request: Request, ...):
        ...
"""

import logging
from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses user ID if authenticated, otherwise uses IP address.

    Args:
        request: HTTP request.

    Returns:
        Client identifier string.
    """
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.rate_limit.storage_uri,
)


async def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Handle rate limit exceeded errors.

    Returns a 429 Too Many Requests response with retry information.

    Args:
        request: HTTP request.
        exc: Rate limit exceeded exception.

    Returns:
        JSON response with error details.
    """
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )

    return JSONResponse(
        content={
            "detail": {
                "code": "RATE_LIMITED",
                "message": "Too many requests. Please try again later.",
            }
        },
        status_code=429,
        headers={
            "Retry-After": str(getattr(exc, "retry_after", 60)),
            "X-RateLimit-Limit": str(settings.rate_limit.requests_per_minute),
        },
    )


def rate_limit(limit_string: str) -> Callable:
    """Create a rate limit decorator.

    Args:
        limit_string: Rate limit string (e.g., "5/minute", "100/hour").

    Returns:
        Decorator function.
    """
    return limiter.limit(limit_string)


RATE_LIMIT_TRANSFER = "20/minute"  # Batch transfers and undos
