"""
Access control for payment intake.

Registering a payment commits the relaying account to pay gas for it, so
when API_TOKEN is set, POST /api/payments requires it in the X-API-Key
header. Read endpoints stay open. Without API_TOKEN intake is open
(local development only).
"""

import hmac
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from .config import Settings, get_settings

logger = structlog.get_logger()

intake_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _reject(request: Request, reason: str, detail: str) -> HTTPException:
    logger.warning(
        "payment_intake_rejected",
        reason=reason,
        path=request.url.path,
        client=request.client.host if request.client else None,
    )
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "X-API-Key"},
    )


async def require_intake_token(
    request: Request,
    api_key: Optional[str] = Depends(intake_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """Allow payment intake only for callers holding the configured token."""
    if not settings.api_token:
        return

    if not api_key:
        raise _reject(
            request, "missing_token", "API token required. Provide via X-API-Key header."
        )

    if not hmac.compare_digest(api_key.encode(), settings.api_token.encode()):
        raise _reject(request, "invalid_token", "Invalid API token")
