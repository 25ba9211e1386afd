"""
Authentication Service
Credential checks and the server side session lifecycle
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from partner_portal.core.errors import BadRequest, InvalidCredentials, ServerError
from partner_portal.core.security import (
    dummy_verify,
    generate_session_id,
    get_session_expiry,
    is_session_expired,
    utcnow,
    verify_password,
)
from partner_portal.models import User, Session as UserSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Identity attached to the current request"""
    user_id: Optional[int] = None
    username: Optional[str] = None
    is_partner: bool = False
    is_admin: bool = False
    session_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()

    @classmethod
    def from_session(cls, session: UserSession) -> "SessionContext":
        return cls(
            user_id=session.user_id,
            username=session.username,
            is_partner=bool(session.is_partner),
            is_admin=bool(session.is_admin),
            session_id=session.session_id,
        )


class AuthService:
    """
    Login, logout and session resolution

    All session writes are committed before the method returns, so a client
    following the login redirect always finds its session.
    """

    def __init__(self, db: Session, session_lifetime_hours: int):
        """
        Args:
            db: Database session
            session_lifetime_hours: Sliding session lifetime
        """
        self.db = db
        self.session_lifetime_hours = session_lifetime_hours

    def login(self, username: str, password: str, previous_session_id: Optional[str] = None) -> UserSession:
        """
        Verify credentials and open a new session

        Args:
            username: Exact (case sensitive) username
            password: Plain text password
            previous_session_id: Session already held by the client, dropped on success

        Returns:
            The persisted Session row

        Raises:
            BadRequest: username or password is empty
            InvalidCredentials: unknown user or wrong password
            ServerError: database failure
        """
        if not username or not password:
            raise BadRequest("Username and Password are required.")

        try:
            user = self.db.query(User).filter(User.username == username).first()

            if not user:
                dummy_verify()
                logger.warning(f"🔒 Login failed: user '{username}' not found")
                raise InvalidCredentials()

            if not verify_password(password, user.password_hash):
                logger.warning(f"🔒 Login failed: invalid password for user '{username}'")
                raise InvalidCredentials()

            if previous_session_id:
                self.db.query(UserSession).filter(
                    UserSession.session_id == previous_session_id
                ).delete(synchronize_session=False)

            session = UserSession(
                session_id=generate_session_id(),
                user_id=user.id,
                username=user.username,
                is_partner=bool(user.is_partner),
                is_admin=bool(user.is_admin),
                expires_at=get_session_expiry(self.session_lifetime_hours),
            )
            self.db.add(session)
            self.db.commit()
            self.db.refresh(session)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Login error: {e}", exc_info=True)
            raise ServerError("A server error occurred during login.") from e

        logger.info(f"✅ Login successful: user '{user.username}' (admin={user.is_admin})")

        return session

    def resolve(self, session_id: Optional[str]) -> SessionContext:
        """
        Find the session behind a cookie and slide its expiry

        Expired sessions are deleted and treated as absent.

        Args:
            session_id: Session id from the cookie

        Returns:
            SessionContext (anonymous if there is no valid session)
        """
        if not session_id:
            return SessionContext.anonymous()

        try:
            session = self.db.query(UserSession).filter(
                UserSession.session_id == session_id
            ).first()

            if not session:
                return SessionContext.anonymous()

            if is_session_expired(session.expires_at):
                self.db.delete(session)
                self.db.commit()
                logger.info(f"⌛ Session expired: user {session.user_id}")
                return SessionContext.anonymous()

            session.expires_at = get_session_expiry(self.session_lifetime_hours)
            self.db.commit()

            return SessionContext.from_session(session)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Session lookup error: {e}", exc_info=True)
            raise ServerError() from e

    def logout(self, session_id: Optional[str]) -> bool:
        """
        Destroy a session

        Returns:
            True if a session row was removed
        """
        if not session_id:
            return False

        try:
            deleted = self.db.query(UserSession).filter(
                UserSession.session_id == session_id
            ).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Session destruction error: {e}", exc_info=True)
            raise ServerError("Could not log out.") from e

        if deleted:
            logger.info("✅ Logout successful")

        return bool(deleted)

    def cleanup_expired_sessions(self) -> int:
        """
        Delete every expired session

        Returns:
            Number of deleted sessions
        """
        try:
            deleted = self.db.query(UserSession).filter(
                UserSession.expires_at < utcnow()
            ).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Session cleanup error: {e}", exc_info=True)
            raise ServerError("Failed to clean up sessions.") from e

        logger.info(f"🧹 Cleaned up {deleted} expired sessions")

        return deleted
