from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from salarybench.core.config import settings
from salarybench.core.database import get_db
from salarybench.core.limiter import client_identity
from salarybench.services.rate_limiter import (
    Denied,
    FixedWindowRateLimiter,
    RateLimitCheckFailed,
)


def get_rate_limiter(db: Session = Depends(get_db)) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(
        db,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_hours=settings.RATE_LIMIT_WINDOW_HOURS,
        cleanup=settings.RATE_LIMIT_CLEANUP,
    )


def require_quota(
    rate_limiter: FixedWindowRateLimiter, request: Request, endpoint: str
) -> None:
    """
    Record one call to ``endpoint`` for the caller or raise.

    429 when the window is used up, 503 when the check itself failed.
    Must run before any upstream AI call.
    """
    try:
        decision = rate_limiter.check_and_record(client_identity(request), endpoint)
    except RateLimitCheckFailed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limit check failed",
        )

    if isinstance(decision, Denied):
        hours = decision.retry_after_hours
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many requests. Please try again in {hours} hours.",
            headers={"Retry-After": str(hours * 3600)},
        )
