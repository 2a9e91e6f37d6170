import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .settings import Settings

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # SlowAPIMiddleware calls this synchronously
    logger.warning("[RATE] %s exceeded %s on %s", get_remote_address(request), exc.detail, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"success": False, "error": RATE_LIMIT_MESSAGE},
    )


def init_rate_limit(app: FastAPI, settings: Settings) -> Limiter:
    """
    One global quota per client address on every route; routes opt out
    with `@limiter.exempt`. Each app gets its own in-memory counters.
    """
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.RATE_LIMIT],
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    if settings.RATE_LIMIT_ENABLED:
        logger.info("[RATE] limit ON (%s)", settings.RATE_LIMIT)
    else:
        logger.info("[RATE] limit OFF")
    return limiter
