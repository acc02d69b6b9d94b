"""SQLAlchemy ORM models for locally persisted client state"""

from sqlalchemy import Column, String, DateTime, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# Single-row table: the app holds at most one signed-in session
SESSION_KEY = "current"


class StoredSession(Base):
    """Bearer token and cached user record, read back on startup"""

    __tablename__ = "stored_session"

    key = Column(String(32), primary_key=True, default=SESSION_KEY)
    token = Column(Text, nullable=False)
    user = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
