"""
Security: password hashing, session tokens
"""

from datetime import datetime, timedelta, timezone
import secrets

from passlib.context import CryptContext

from partner_portal.core.config import settings

# ============================================================================
# PASSWORD HASHING
# ============================================================================

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def configure_hashing(rounds: int):
    """
    Set the bcrypt cost used for new hashes

    Existing hashes keep verifying whatever their cost.
    """
    pwd_context.update(bcrypt__rounds=rounds)


def hash_password(password: str) -> str:
    """
    Hash a password

    Args:
        password: Plain text password

    Returns:
        bcrypt hash
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a password against a stored hash

    Args:
        plain_password: Plain text password
        hashed_password: Hash from the database

    Returns:
        True if the password matches
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # Malformed or unknown hash in the database
        return False


def dummy_verify():
    """Burn the same time as a real verification (used for unknown users)"""
    pwd_context.dummy_verify()


# ============================================================================
# SESSION MANAGEMENT
# ============================================================================

def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_session_id() -> str:
    """
    Generate an opaque session id

    Returns:
        64 character hex token
    """
    return secrets.token_hex(32)


def get_session_expiry(lifetime_hours: int) -> datetime:
    """
    Expiry for a session touched right now

    Args:
        lifetime_hours: Session lifetime

    Returns:
        datetime (now + lifetime_hours)
    """
    return utcnow() + timedelta(hours=lifetime_hours)


def is_session_expired(expires_at: datetime) -> bool:
    """
    Check whether a session has expired

    Args:
        expires_at: Session expiry

    Returns:
        True if the session has expired
    """
    if expires_at.tzinfo is not None:
        expires_at = expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    return utcnow() > expires_at
