"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance that routers import for per-endpoint
limits; main.py wires it into the app.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hrconsole.config import settings

# Default applies to every endpoint; decision routes override with
# @limiter.limit("N/period").
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)

DECISION_LIMIT = "30/minute"
