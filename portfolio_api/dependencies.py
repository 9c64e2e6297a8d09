"""Shared request dependencies: authentication gates and the login rate limit."""

import logging

from fastapi import Depends, Header, Request

from portfolio_api.config import settings
from portfolio_api.errors import Forbidden, RateLimited, Unauthorized
from portfolio_api.models.user import UserEntry
from portfolio_api.services.rate_limit import RateLimitExceeded
from portfolio_api.services.tokens import TokenError, decode_access_token
from portfolio_api.services.users import user_store

LOGGER = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_current_user(
    request: Request, authorization: str | None = Header(default=None)
) -> UserEntry:
    """Resolve the bearer token to a user and attach it to ``request.state``."""
    if not authorization:
        raise Unauthorized("No token provided")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("No token provided")
    try:
        access_data = decode_access_token(token)
    except TokenError as exc:
        raise Unauthorized("Invalid or expired token") from exc
    user = user_store.get_user(access_data.user_id)
    if user is None:
        LOGGER.warning(
            "Token for missing user: user_id=%s email=%s",
            access_data.user_id,
            access_data.email,
        )
        raise Unauthorized("User not found")
    if (
        settings.revoke_tokens_on_password_change
        and access_data.token_version != (user.token_version or 0)
    ):
        LOGGER.info(
            "Revoked token presented: user_id=%s email=%s",
            access_data.user_id,
            access_data.email,
        )
        raise Unauthorized("Token has been revoked")
    request.state.user = user
    return user


def require_admin(user: UserEntry = Depends(get_current_user)) -> UserEntry:
    if user.role != "admin":
        raise Forbidden()
    return user


def rate_limit_login(request: Request) -> None:
    try:
        request.app.state.login_limiter.check(client_ip(request))
    except RateLimitExceeded as exc:
        raise RateLimited(
            exc.message, headers={"Retry-After": str(exc.retry_after)}
        ) from exc
