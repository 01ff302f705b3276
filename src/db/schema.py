"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBQueuedPlayer(Base):
    __tablename__ = "queued_players"
    # autoincrementing sequence number keeps the queue in join order
    seq: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(unique=True, index=True)
    name: Mapped[str] = mapped_column(unique=True)
    joined_at: Mapped[datetime] = mapped_column(default=utc_now)


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    # unique: at most one active and at most one finished game can ever be stored
    status: Mapped[str] = mapped_column(unique=True, index=True)
    players: Mapped[list[str]] = mapped_column(JSON)
    board: Mapped[list[list[Optional[str]]]] = mapped_column(JSON)
    current_player_index: Mapped[int] = mapped_column(default=0)
    winner: Mapped[Optional[str]]
    # bumped on every update; writes are conditional on the version that was read
    version: Mapped[int] = mapped_column(default=1)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
