"""Database session management for the local session store"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from society_portal.config import settings
from society_portal.infrastructure.database.models import Base


def _connect_args(url: str) -> dict:
    # sqlite connections are shared between the event loop and the threadpool
    return {"check_same_thread": False} if url.startswith("sqlite") else {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the session table if it does not exist yet"""
    Base.metadata.create_all(bind=engine)
