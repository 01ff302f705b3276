"""Generate database session"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import get_settings
from src.db.schema import Base

logger = logging.getLogger(__name__)

settings = get_settings()
connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)
engine = create_engine(
    settings.DATABASE_URL, echo=settings.DATABASE_ECHO, connect_args=connect_args
)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def init_db() -> None:
    """Ensure all tables are created"""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready at %s", engine.url.render_as_string(hide_password=True))


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
