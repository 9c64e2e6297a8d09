from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import secrets

from sqlalchemy import delete, select, update

from portfolio_api.config import settings
from portfolio_api.database import session_scope
from portfolio_api.models.session import SessionEntry


class SessionStore:
    def __init__(self, ttl_seconds: int) -> None:
        self._ttl_seconds = ttl_seconds

    def create_session(self, user_id: int, email: str) -> str:
        now = datetime.now(timezone.utc)
        token = secrets.token_urlsafe(32)
        expires_at = now + timedelta(seconds=self._ttl_seconds)
        with session_scope() as session:
            session.execute(delete(SessionEntry).where(SessionEntry.expires_at <= now))
            session.add(
                SessionEntry(
                    token=token,
                    user_id=user_id,
                    email=email,
                    created_at=now,
                    expires_at=expires_at,
                    revoked_at=None,
                )
            )
        return token

    def get_session(self, token: str) -> SessionEntry | None:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                select(SessionEntry).where(
                    SessionEntry.token == token,
                    SessionEntry.revoked_at.is_(None),
                    SessionEntry.expires_at > now,
                )
            )
            return result.scalar_one_or_none()

    def revoke_session(self, token: str) -> bool:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                update(SessionEntry)
                .where(SessionEntry.token == token, SessionEntry.revoked_at.is_(None))
                .values(revoked_at=now)
            )
            return result.rowcount > 0

    def revoke_user_sessions(self, user_id: int) -> int:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                update(SessionEntry)
                .where(
                    SessionEntry.user_id == user_id,
                    SessionEntry.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )
            return result.rowcount


def _signature(session_id: str) -> str:
    return hmac.new(
        settings.session_secret.encode("utf-8"),
        session_id.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_session_id(session_id: str) -> str:
    return f"{session_id}.{_signature(session_id)}"


def unsign_session_id(cookie_value: str | None) -> str | None:
    if not cookie_value:
        return None
    session_id, _, signature = cookie_value.rpartition(".")
    if not session_id or not signature:
        return None
    if not hmac.compare_digest(signature, _signature(session_id)):
        return None
    return session_id


session_store = SessionStore(settings.session_ttl_seconds)
