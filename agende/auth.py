"""Admin login and session tokens."""
import hmac
import uuid
from datetime import datetime, timedelta, UTC
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from agende import config
from agende.api.database_models import AdminSession, Base
from agende.database import store_operation
from agende.logging_config import get_logger

logger = get_logger(__name__)


class InvalidCredentialsError(Exception):
    """Raised on a bad login or an invalid/expired session token."""
    pass


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AdminAuthenticator:
    """
    Single-admin login backed by session tokens.

    Pattern: random token shown once, stored bcrypt-hashed with a prefix
    index for O(1) lookup. Sessions expire after max_age_hours of inactivity.
    """

    def __init__(
        self,
        engine: Engine,
        username: Optional[str] = None,
        password: Optional[str] = None,
        max_age_hours: Optional[int] = None
    ):
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)
        self.username = username if username is not None else config.ADMIN_USERNAME
        self.password = password if password is not None else config.ADMIN_PASSWORD
        self.max_age_hours = max_age_hours or config.SESSION_MAX_AGE_HOURS

    def _credentials_match(self, username: str, password: str) -> bool:
        if not self.username or not self.password:
            return False
        username_ok = hmac.compare_digest(username.encode(), self.username.encode())
        password_ok = hmac.compare_digest(password.encode(), self.password.encode())
        return username_ok and password_ok

    def login(self, username: str, password: str) -> str:
        """
        Check the admin credentials and open a session.

        WARNING: Returns the token in plain text ONCE.

        Returns:
            Session token in format: st_<uuid hex>

        Raises:
            InvalidCredentialsError: On mismatch or when no admin is configured
        """
        if not self._credentials_match(username, password):
            logger.warning("admin_login_failed", username=username)
            raise InvalidCredentialsError("Invalid username or password")

        token = f"st_{uuid.uuid4().hex}"
        now = datetime.now(UTC)

        with store_operation("opening admin session"), self.SessionLocal() as db:
            db.add(AdminSession(
                token_prefix=AdminSession.get_token_prefix(token),
                token_hash=AdminSession.hash_token(token),
                username=username,
                created_at=now,
                last_activity=now,
            ))
            db.commit()

        logger.info("admin_login", username=username)
        return token

    def validate_token(self, token: str) -> str:
        """
        Validate a session token and touch its last activity.

        Returns:
            Username owning the session

        Raises:
            InvalidCredentialsError: If the token is unknown or expired
        """
        if not token:
            raise InvalidCredentialsError("Missing session token")

        with store_operation("validating admin session"), self.SessionLocal() as db:
            session = db.get(AdminSession, AdminSession.get_token_prefix(token))
            if not session or not AdminSession.verify_token(token, session.token_hash):
                raise InvalidCredentialsError("Invalid session token")

            now = datetime.now(UTC)
            if now - _as_utc(session.last_activity) > timedelta(hours=self.max_age_hours):
                db.delete(session)
                db.commit()
                raise InvalidCredentialsError("Session expired")

            session.last_activity = now
            db.commit()
            return session.username

    def logout(self, token: str) -> bool:
        """End a session. Returns False if the token matched nothing."""
        with store_operation("closing admin session"), self.SessionLocal() as db:
            session = db.get(AdminSession, AdminSession.get_token_prefix(token))
            if not session or not AdminSession.verify_token(token, session.token_hash):
                return False
            db.delete(session)
            db.commit()
        return True

    def cleanup_expired_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """
        Delete sessions inactive for longer than max_age_hours.

        Returns:
            Number of deleted sessions
        """
        cutoff_time = datetime.now(UTC) - timedelta(hours=max_age_hours or self.max_age_hours)

        with store_operation("cleaning up admin sessions"), self.SessionLocal() as db:
            deleted = db.query(AdminSession).filter(
                AdminSession.last_activity < cutoff_time
            ).delete()
            db.commit()

        if deleted:
            logger.info("admin_sessions_cleaned", deleted=deleted)
        return deleted

    def _update_last_activity(self, token: str, timestamp: datetime):
        """Helper for testing - manually update last_activity."""
        with self.SessionLocal() as db:
            session = db.get(AdminSession, AdminSession.get_token_prefix(token))
            if session:
                session.last_activity = timestamp
                db.commit()
