"""Generate database sessions"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from variant_chess.core.config import Settings
from variant_chess.db.schema import Base

logger = logging.getLogger(__name__)


def build_session_factory(settings: Settings) -> sessionmaker[Session]:
    """Engine + session factory for the configured database. Tables get created if missing."""
    assert settings.database_url, "No database configured"

    connect_args = {}
    extra = {}
    if settings.database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if ":memory:" in settings.database_url:
            # one connection, otherwise every session would see its own empty database
            extra = {"poolclass": StaticPool}

    engine = create_engine(
        settings.database_url, echo=settings.sql_echo, connect_args=connect_args, **extra
    )

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    logger.info("Connected to database %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine)


@contextmanager
def get_db(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """One session per unit of work (a request, a websocket message)."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
