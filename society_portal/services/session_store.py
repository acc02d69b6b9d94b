"""Session Store: the single owner of authentication state"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session as DBSession

from society_portal.domain.exceptions import DomainException, RemoteAPIError
from society_portal.domain.models import Session, UserSummary
from society_portal.infrastructure.clients.portal import PortalClient
from society_portal.infrastructure.database.repositories import StoredSessionRepository
from society_portal.infrastructure.observability.logging import log_session_event
from society_portal.infrastructure.observability.metrics import session_invalidation_counter

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Holds the bearer token and cached user for the app's lifetime.

    Mutated only through restore/login/logout and the 401/403 hook
    (`invalidate`), which the bound PortalClient calls for every endpoint.
    """

    def __init__(self, client: PortalClient, db_factory: Callable[[], DBSession]):
        self.client = client
        self._db_factory = db_factory
        self._session = Session()
        self.loading = True
        client.bind_session(self)

    @property
    def token(self) -> Optional[str]:
        return self._session.token

    @property
    def user(self) -> Optional[UserSummary]:
        return self._session.user

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    async def restore(self) -> bool:
        """
        Validate a persisted session against GET /me.

        Never raises: network failures and rejected tokens both end in the
        logged-out state with storage cleared. Returns is_authenticated.
        """
        try:
            stored = self._load()
            if stored is None:
                return False

            token, _cached_user = stored
            # Token only; the session is not authenticated until /me confirms it
            self._session = Session(token=token)
            try:
                user = await self.client.get_me()
            except DomainException as e:
                logger.warning("Session validation failed", extra={"error": str(e)})
                session_invalidation_counter.labels(reason="restore_failed").inc()
                self._clear()
                log_session_event("restore_failed", reason=str(e))
                return False

            self._session = Session(token=token, user=user)
            self._persist(token, user)
            log_session_event("restored", user_id=user.id)
            return True
        except Exception as e:
            # Storage failures must not leave the app stuck loading
            logger.error("Error restoring session", extra={"error": str(e)})
            self._session = Session()
            try:
                self._clear()
            except Exception as clear_error:
                logger.error("Error clearing stored session", extra={"error": str(clear_error)})
            return False
        finally:
            self.loading = False

    def login(self, user: UserSummary, token: str) -> None:
        """Adopt an already server-validated (user, token) pair"""
        self._session = Session(token=token, user=user)
        self._persist(token, user)
        self.loading = False
        log_session_event("login", user_id=user.id)

    def logout(self) -> None:
        user_id = self.user.id if self.user else None
        self._clear()
        log_session_event("logout", user_id=user_id)

    async def invalidate(self) -> None:
        """Called by the HTTP layer when the token is rejected (401/403)"""
        if self._session.token is None and self._session.user is None:
            return
        session_invalidation_counter.labels(reason="unauthorized").inc()
        user_id = self.user.id if self.user else None
        self._clear()
        log_session_event("invalidated", user_id=user_id, reason="unauthorized")

    async def authenticate(self, email: str, password: str) -> UserSummary:
        """Remote login followed by `login` with the returned pair"""
        return self._adopt(await self.client.login(email, password))

    async def register(self, name: str, email: str, password: str) -> UserSummary:
        return self._adopt(await self.client.register(name, email, password))

    async def refresh_user(self) -> UserSummary:
        """Re-fetch /me and keep the current token"""
        user = await self.client.get_me()
        if self.token:
            self.login(user, self.token)
        return user

    def _adopt(self, data: dict) -> UserSummary:
        if not data.get("token") or not data.get("user"):
            raise RemoteAPIError("Login response did not include a session")
        user = UserSummary.from_api(data["user"])
        self.login(user, data["token"])
        return user

    def _clear(self) -> None:
        self._session = Session()
        db = self._db_factory()
        try:
            StoredSessionRepository(db).clear()
            db.commit()
        finally:
            db.close()

    def _persist(self, token: str, user: UserSummary) -> None:
        db = self._db_factory()
        try:
            StoredSessionRepository(db).save(token, user)
            db.commit()
        finally:
            db.close()

    def _load(self):
        db = self._db_factory()
        try:
            return StoredSessionRepository(db).load()
        finally:
            db.close()
