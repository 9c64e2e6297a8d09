import logging
from contextlib import asynccontextmanager
from urllib.parse import parse_qsl, urlencode

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from portfolio_api.config import settings
from portfolio_api.database import init_db
from portfolio_api.dependencies import client_ip
from portfolio_api.errors import (
    AccessDenied,
    RateLimited,
    error_response,
    register_exception_handlers,
)
from portfolio_api.logging import configure_logging
from portfolio_api.routers import auth, health, users
from portfolio_api.services.access import IpAccessList
from portfolio_api.services.rate_limit import FixedWindowRateLimiter, RateLimitExceeded
from portfolio_api.services.users import user_store

LOGGER = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data: https:"
    ),
    "Cross-Origin-Resource-Policy": "cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}
HSTS_HEADER = "max-age=15552000; includeSubDomains"


def seed_admin() -> None:
    if not settings.seed_email or not settings.seed_password:
        return
    try:
        _, created = user_store.ensure_admin(
            settings.seed_email, settings.seed_password, settings.seed_name
        )
    except ValueError as exc:
        LOGGER.error("Admin seed skipped: %s", exc)
        return
    if created:
        LOGGER.info("Seeded admin user %s", settings.seed_email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    seed_admin()
    yield


def _first_values(query_string: bytes) -> bytes:
    seen: dict[str, str] = {}
    for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
        seen.setdefault(key, value)
    return urlencode(seen).encode("latin-1")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Portfolio API", lifespan=lifespan)

    app.state.ip_access = IpAccessList(settings.blocked_ips)
    app.state.api_limiter = FixedWindowRateLimiter(
        max_hits=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        message="Too many requests from this IP, please try again later.",
    )
    app.state.login_limiter = FixedWindowRateLimiter(
        max_hits=settings.login_rate_limit_max_attempts,
        window_seconds=settings.rate_limit_window_seconds,
        message="Too many login attempts, please try again later.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def prevent_param_pollution(request: Request, call_next):
        query_string = request.scope.get("query_string", b"")
        if query_string:
            request.scope["query_string"] = _first_values(query_string)
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        LOGGER.info("%s %s - IP: %s", request.method, request.url.path, client_ip(request))
        return await call_next(request)

    @app.middleware("http")
    async def limit_api_requests(request: Request, call_next):
        if request.url.path.startswith("/api/"):
            try:
                request.app.state.api_limiter.consume(client_ip(request))
            except RateLimitExceeded as exc:
                return error_response(
                    RateLimited.status_code,
                    exc.message,
                    headers={"Retry-After": str(exc.retry_after)},
                )
        return await call_next(request)

    @app.middleware("http")
    async def check_ip_access(request: Request, call_next):
        if request.app.state.ip_access.is_blocked(client_ip(request)):
            return error_response(AccessDenied.status_code, AccessDenied.message)
        return await call_next(request)

    # Outermost, so every response above carries the headers.
    @app.middleware("http")
    async def set_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.is_production:
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)
        return response

    register_exception_handlers(app)

    app.include_router(health.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    return app


app = create_app()
