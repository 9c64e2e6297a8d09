from datetime import datetime, timezone

from sqlalchemy import select

from portfolio_api.database import session_scope
from portfolio_api.models.user import ROLES, UserEntry
from portfolio_api.services import passwords


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _validate_role(role: str) -> str:
    if role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
    return role


def to_public(entry: UserEntry) -> dict:
    return {
        "id": entry.id,
        "email": entry.email,
        "name": entry.name,
        "role": entry.role,
    }


class UserStore:
    def find_by_email(self, email: str | None) -> UserEntry | None:
        if not email:
            return None
        key = _normalize_email(email)
        with session_scope() as session:
            result = session.execute(select(UserEntry).where(UserEntry.email == key))
            return result.scalar_one_or_none()

    def get_user(self, user_id: int) -> UserEntry | None:
        with session_scope() as session:
            return session.get(UserEntry, user_id)

    def list_users(self) -> list[UserEntry]:
        with session_scope() as session:
            result = session.execute(select(UserEntry).order_by(UserEntry.id))
            return list(result.scalars().all())

    def verify_password(self, entry: UserEntry | None, plaintext: str) -> bool:
        if entry is None:
            return passwords.verify_dummy(plaintext)
        return passwords.verify_password(plaintext, entry.password_hash)

    def update_password(self, user_id: int, new_plaintext: str) -> UserEntry:
        password_hash = passwords.hash_password(new_plaintext)
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise ValueError("User not found")
            entry.password_hash = password_hash
            entry.token_version = (entry.token_version or 0) + 1
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            return entry

    def record_login(self, user_id: int) -> datetime:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise ValueError("User not found")
            entry.last_login = now
        return now

    def set_active(self, user_id: int, is_active: bool) -> UserEntry:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise ValueError("User not found")
            entry.is_active = is_active
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            return entry

    def create_user(
        self, email: str, password: str, name: str, role: str = "editor"
    ) -> UserEntry:
        key = _normalize_email(email)
        if not key:
            raise ValueError("Email is required")
        role = _validate_role(role)
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            existing = session.execute(
                select(UserEntry).where(UserEntry.email == key)
            ).scalar_one_or_none()
            if existing:
                raise ValueError("Email already in use")
            entry = UserEntry(
                email=key,
                password_hash=passwords.hash_password(password),
                name=name.strip() or key,
                role=role,
                is_active=True,
                last_login=None,
                token_version=0,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            return entry

    def ensure_admin(
        self, email: str, password: str, name: str = "Admin"
    ) -> tuple[UserEntry, bool]:
        key = _normalize_email(email)
        with session_scope() as session:
            entry = session.execute(
                select(UserEntry).where(UserEntry.email == key)
            ).scalar_one_or_none()
            if entry:
                if entry.role != "admin":
                    entry.role = "admin"
                    entry.updated_at = datetime.now(timezone.utc)
                session.flush()
                return entry, False
        return self.create_user(key, password, name, role="admin"), True


user_store = UserStore()
