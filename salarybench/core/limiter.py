"""
Burst limiter singleton — shared across the application.

Uses slowapi (built on top of limits) to throttle per-IP on the cheap read
endpoints. The expensive AI endpoints are additionally guarded by the
database-backed fixed window in services/rate_limiter.py, which also reuses
``get_remote_address`` so both limiters agree on the client identity.

In tests the limiter is enabled=False so that rapid test requests
don't trigger 429 responses (see conftest.py).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, enabled=True)


def client_identity(request) -> str:
    """Identity used for rate limiting: the caller's IP address."""
    return get_remote_address(request)
