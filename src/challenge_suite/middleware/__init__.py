"""Middleware and exception handler registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from challenge_suite.config import Settings
from challenge_suite.middleware.error_handler import setup_error_handlers
from challenge_suite.middleware.logging import setup_logging
from challenge_suite.middleware.rate_limit import RateLimitMiddleware
from challenge_suite.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Starlette runs middleware last-added-first.

    Order from the outside in: CORS, request context, rate limiting. A 429
    from the limiter therefore still gets a request id and CORS headers.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
