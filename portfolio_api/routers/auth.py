import logging

from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response

from portfolio_api.config import settings
from portfolio_api.dependencies import (
    client_ip,
    get_current_user,
    rate_limit_login,
)
from portfolio_api.errors import (
    AccountDeactivated,
    InvalidCredentials,
    ServerError,
    Unauthorized,
    ValidationError,
)
from portfolio_api.logging import get_audit_logger
from portfolio_api.models.user import UserEntry
from portfolio_api.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
)
from portfolio_api.services.sessions import (
    session_store,
    sign_session_id,
    unsign_session_id,
)
from portfolio_api.services.tokens import TokenError, create_access_token
from portfolio_api.services.users import to_public, user_store

LOGGER = logging.getLogger(__name__)
AUDIT = get_audit_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_session_id(session_id),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _authenticate(payload: LoginRequest, ip: str) -> UserEntry:
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not email or not password:
        AUDIT.info("Login rejected: missing_fields email=%s ip=%s", email or "-", ip)
        raise ValidationError("Email and password are required")

    user = user_store.find_by_email(email)
    if user is None:
        user_store.verify_password(None, password)
        AUDIT.warning("Login failed: unknown_email email=%s ip=%s", email, ip)
        raise InvalidCredentials()

    if not user_store.verify_password(user, password):
        AUDIT.warning("Login failed: wrong_password email=%s ip=%s", email, ip)
        raise InvalidCredentials()

    if not user.is_active:
        AUDIT.warning("Login rejected: deactivated email=%s ip=%s", email, ip)
        raise AccountDeactivated()

    return user


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limit_login)],
)
def login(payload: LoginRequest, request: Request, response: Response) -> LoginResponse:
    ip = client_ip(request)
    try:
        user = _authenticate(payload, ip)
    except HTTPException:
        request.app.state.login_limiter.hit(ip)
        raise

    user_store.record_login(user.id)
    session_id = session_store.create_session(user.id, user.email)
    try:
        token = create_access_token(user.id, user.email, user.token_version or 0)
    except TokenError as exc:
        LOGGER.error("Unable to issue access token: %s", exc)
        raise ServerError() from exc

    _set_session_cookie(response, session_id)
    AUDIT.info("Login succeeded: email=%s ip=%s", user.email, ip)
    return LoginResponse(token=token, user=to_public(user))


@router.get("/me", response_model=MeResponse)
def get_me(user: UserEntry = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=to_public(user))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest, user: UserEntry = Depends(get_current_user)
) -> MessageResponse:
    if not payload.current_password or not payload.new_password:
        raise ValidationError("Current and new password are required")
    if len(payload.new_password) < settings.min_password_length:
        raise ValidationError(
            f"New password must be at least {settings.min_password_length} characters"
        )
    if not user_store.verify_password(user, payload.current_password):
        AUDIT.warning("Password change rejected: user_id=%s", user.id)
        raise Unauthorized("Current password is incorrect")

    try:
        user_store.update_password(user.id, payload.new_password)
    except ValueError as exc:
        raise Unauthorized("User not found") from exc
    if settings.revoke_tokens_on_password_change:
        revoked = session_store.revoke_user_sessions(user.id)
        LOGGER.info("Revoked %d session(s) for user_id=%s", revoked, user.id)
    AUDIT.info("Password changed: user_id=%s", user.id)
    return MessageResponse(message="Password updated successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    user: UserEntry = Depends(get_current_user),
    session_cookie: str | None = Cookie(default=None, alias=settings.session_cookie_name),
) -> MessageResponse:
    session_id = unsign_session_id(session_cookie)
    if session_id and not session_store.revoke_session(session_id):
        LOGGER.debug("Session already gone for user_id=%s", user.id)
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    AUDIT.info("Logout: email=%s ip=%s", user.email, client_ip(request))
    return MessageResponse(message="Logged out successfully")
