"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.core.shared_types import Grid, PlayerName


@dataclass
class QueuedPlayerModel:
    """A player waiting in the queue for the next game."""

    name: PlayerName
    player_id: str


@dataclass
class GameModel:
    """Transport-safe representation of a tic-tac-toe game used between API, Service, DB, and Game layers."""

    status: str
    players: list[PlayerName]
    board: Grid
    current_player_index: int
    winner: Optional[PlayerName] = None
    game_id: Optional[UUID] = None
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = field(default=None, compare=False)
