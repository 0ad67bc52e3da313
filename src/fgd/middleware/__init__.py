"""Middleware registration."""

from fastapi import FastAPI

from fgd.config import Settings
from fgd.middleware.cors import setup_cors
from fgd.middleware.error_handler import setup_error_handlers
from fgd.middleware.logging import setup_logging
from fgd.middleware.rate_limit import RateLimiter, RateLimitMiddleware, build_rate_limiter
from fgd.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings, limiter: RateLimiter | None = None) -> None:
    """Register all middleware in the correct order.

    Starlette runs middleware in reverse-add order (last added = outermost).
    CORS stays outermost so 429 responses still carry CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.state.rate_limiter = limiter or build_rate_limiter(settings)
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
