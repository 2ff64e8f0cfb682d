"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from averzo.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)

# AI flows are public and each call may hit a paid model.
limit_flows = limiter.limit(lambda: get_settings().flows_rate_limit)
