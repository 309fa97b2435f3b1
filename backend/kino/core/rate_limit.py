# kino/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from kino.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.ENABLE_RATE_LIMITING)


def maybe_limit(rule: str):
    """
    Apply a slowapi limit only when rate limiting is enabled.
    Decorators bind at import time, so toggling requires reloading the route module.
    """
    if not settings.ENABLE_RATE_LIMITING:
        def passthrough(fn):
            return fn
        return passthrough
    return limiter.limit(rule)
