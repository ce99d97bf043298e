"""
api/limiter.py -- Shared slowapi rate limiter instance.

api/main.py mounts it as middleware; api/routes/v1/auth.py applies the
per-route limits on login and register with @limiter.limit().

All routes must share this one instance: a limiter created per module gets
its own counter store, and its limits never trigger.

Storage and the on/off switch come from Settings (RATE_LIMIT_STORAGE_URI,
RATE_LIMIT_ENABLED). The in-memory default counts per process.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_settings.rate_limit_storage_uri,
    enabled=_settings.rate_limit_enabled,
)
