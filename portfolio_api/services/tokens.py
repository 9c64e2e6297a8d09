from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from portfolio_api.config import settings


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class AccessTokenData:
    user_id: int
    email: str
    token_version: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    user_id: int,
    email: str,
    token_version: int = 0,
    now: datetime | None = None,
) -> str:
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    issued_at = now or _utcnow()
    expires_at = issued_at + timedelta(days=settings.access_token_expire_days)
    payload = {
        "sub": str(user_id),
        "email": email,
        "ver": token_version,
        "type": "access",
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AccessTokenData:
    payload = _decode_token(token, expected_type="access")
    return AccessTokenData(
        user_id=_parse_subject(payload),
        email=payload.get("email") or "",
        token_version=int(payload.get("ver") or 0),
    )


def _decode_token(token: str, expected_type: str) -> dict:
    if not token:
        raise TokenError("Token is missing")
    if not settings.jwt_secret:
        raise TokenError("JWT secret is not configured")
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc
    if payload.get("type") != expected_type:
        raise TokenError("Invalid token type")
    return payload


def _parse_subject(payload: dict) -> int:
    subject = payload.get("sub")
    if not subject:
        raise TokenError("Token subject is missing")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise TokenError("Invalid token subject") from exc
