import logging

from passlib.context import CryptContext

LOGGER = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Constant-time check of a plain password against a stored hash.

    A missing or unrecognised hash verifies as False instead of raising, so
    callers can treat it like any other mismatch.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        LOGGER.warning("Stored password hash could not be parsed")
        return False


_DUMMY_HASH = pwd_context.hash("placeholder-for-unknown-accounts")


def verify_dummy(plain_password: str) -> bool:
    """Spend the same hashing work as a real check, then fail."""
    pwd_context.verify(plain_password or "", _DUMMY_HASH)
    return False
