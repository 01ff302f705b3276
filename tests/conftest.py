"""
Database fixtures shared by the repository, service and router tests.

* `db_session_repo`: one session on an in-memory SQLite database, fresh tables per test.
* `session_factory`: sessions on a SQLite file, so that concurrent requests each get their own connection (as in production).
"""

from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base

# In-memory SQLite: StaticPool keeps the single connection (and so the data) alive between sessions
memory_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=memory_engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Queue and game tables are created for the test and dropped afterwards."""
    Base.metadata.create_all(bind=memory_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=memory_engine)


@pytest.fixture
def session_factory(tmp_path: Path) -> Generator[sessionmaker[Session], None, None]:
    """Every session opens its own connection to the same database file. Writers wait on each other's locks."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'tictactoe.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autoflush=False, bind=engine)
    finally:
        engine.dispose()
