"""Requests and Response models"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Grid, PlayerName, Status


def _validate_player_name(value: str) -> str:
    """Names are the marks on the board, so surrounding whitespace is dropped and an empty name is refused."""
    name = value.strip()
    if not name:
        raise InvalidRequestError("Player name must not be empty.")
    return name


# --- REQUEST MODELS ---
class JoinQueueRequest(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _validate_player_name(value)


class MoveRequest(BaseModel):
    player_name: str
    row: int = Field(ge=0)
    col: int = Field(ge=0)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


# --- RESPONSE MODELS ---
class JoinQueueResponse(BaseModel):
    player_id: str


class QueuedPlayerResponse(BaseModel):
    name: PlayerName
    player_id: str


class QueueResponse(BaseModel):
    players: list[QueuedPlayerResponse]


class StartGameResponse(BaseModel):
    game_id: UUID


class GameResponse(BaseModel):
    game_id: UUID
    status: Status
    players: list[PlayerName]
    board: Grid
    board_size: int
    current_player_index: int
    current_player: Optional[PlayerName]
    winner: Optional[PlayerName]
    is_draw: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
