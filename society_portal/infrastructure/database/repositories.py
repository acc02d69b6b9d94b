"""Data access layer for the persisted session"""

from typing import Optional, Tuple
from sqlalchemy.orm import Session
from society_portal.infrastructure.database.models import SESSION_KEY, StoredSession
from society_portal.domain.models import UserSummary


class StoredSessionRepository:
    """Repository for the persisted token + user pair"""

    def __init__(self, db: Session):
        self.db = db

    def load(self) -> Optional[Tuple[str, UserSummary]]:
        """Return the persisted (token, user), or None when nothing usable is stored"""
        row = self.db.get(StoredSession, SESSION_KEY)
        if row is None or not row.token or not row.user:
            return None
        return row.token, UserSummary.from_api(row.user)

    def save(self, token: str, user: UserSummary) -> None:
        """Insert or replace the persisted session"""
        row = self.db.get(StoredSession, SESSION_KEY)
        if row is None:
            row = StoredSession(key=SESSION_KEY)
            self.db.add(row)
        row.token = token
        row.user = user.to_api()
        self.db.flush()

    def clear(self) -> None:
        self.db.query(StoredSession).filter(StoredSession.key == SESSION_KEY).delete()
        self.db.flush()
