"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules (auth) can use
the same instance without circular imports. Central limit strings and decorators
keep rate limits DRY. Limits are per client IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
LOGIN_LIMIT = "10/minute"
OTP_LIMIT = "20/minute"

limit_auth = limiter.limit(LOGIN_LIMIT)
limit_otp = limiter.limit(OTP_LIMIT)
