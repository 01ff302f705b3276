"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for the turn state machine of a single game: validating a move, applying it, and deciding if the game ended.
The waiting queue and the "one game at a time" rule are the service's concern.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Self
from uuid import UUID

from src.core.exceptions import (
    CellOccupiedError,
    GameStateError,
    NoActiveGameError,
    NotEnoughPlayersError,
    NotYourTurnError,
)
from src.core.models import GameModel
from src.core.shared_types import PlayerName, Status
from src.tictactoe.board import Board
from src.tictactoe.win_detector import check_win

MIN_PLAYERS = 2


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    players: list[PlayerName]
    board: Board
    current_player_index: int
    status: Status
    winner: Optional[PlayerName] = None
    game_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def new_game(cls, players: list[PlayerName]) -> Self:
        """Start a game for the players, in the given order. The board side is one more than the number of players."""
        if len(players) < MIN_PLAYERS:
            raise NotEnoughPlayersError(
                f"Need at least {MIN_PLAYERS} players to start a game, got {len(players)}."
            )
        if len(set(players)) != len(players):
            raise GameStateError(f"Player names must be unique: {players}")
        return cls(
            players=list(players),
            board=Board.empty(len(players) + 1),
            current_player_index=0,
            status=Status.ACTIVE,
        )

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.status not in [status.value for status in Status]:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(status.value for status in Status)}"
            )
        status = Status(model.status)
        board = Board.from_rows(model.board)
        if board.size != len(model.players) + 1:
            raise GameStateError(
                f"Board side {board.size} does not fit {len(model.players)} players."
            )
        if status == Status.ACTIVE and not 0 <= model.current_player_index < len(model.players):
            raise GameStateError(
                f"Current player index {model.current_player_index} out of range."
            )
        unknown_marks = board.marks() - set(model.players)
        if unknown_marks:
            raise GameStateError(f"Board holds marks of unknown players: {unknown_marks}")

        return cls(
            players=list(model.players),
            board=board,
            current_player_index=model.current_player_index,
            status=status,
            winner=model.winner,
            game_id=model.game_id,
            created_at=model.created_at,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            status=self.status.value,
            players=list(self.players),
            board=self.board.to_rows(),
            current_player_index=self.current_player_index,
            winner=self.winner,
            game_id=self.game_id,
            created_at=self.created_at,
        )

    @property
    def current_player(self) -> Optional[PlayerName]:
        """Whose turn it is. Nobody's once the game has finished."""
        if self.status != Status.ACTIVE:
            return None
        return self.players[self.current_player_index]

    @property
    def is_draw(self) -> bool:
        return self.status == Status.FINISHED and self.winner is None

    def make_move(self, player: PlayerName, row: int, col: int) -> None:
        """
        Attempt to make a move
        -----

        1. the game must be active
        2. it must be the player's turn
        3. the cell must be on the board and empty
        4. place the mark on a copy of the board
        5. update the game status: win, draw (board full), or pass the turn to the next player
        """
        if self.status != Status.ACTIVE:
            raise NoActiveGameError(f"Game is not active. status: {self.status}")

        self._assert_your_turn(player)

        if not self.board.is_empty_at(row, col):
            raise CellOccupiedError(
                f"Cell ({row}, {col}) is already occupied by {self.board.mark_at(row, col)}."
            )

        new_board = self.board.with_mark(row, col, player)
        self._update_game_status(new_board, row, col, player)
        self.board = new_board

    # -- PRIVATE HELPERS ---
    def _assert_your_turn(self, player: PlayerName) -> None:
        """You must wait for your turn before making a move."""
        player_to_move = self.players[self.current_player_index]
        if player != player_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {player_to_move} to make a move first."
            )

    def _update_game_status(
        self, board: Board, row: int, col: int, player: PlayerName
    ) -> None:
        """Performs checks to see if the game has ended and changes status accordingly."""
        if check_win(board.cells, row, col, player):
            self.winner = player
            self._change_status(Status.FINISHED)
        elif board.is_full():
            self.winner = None
            self._change_status(Status.FINISHED)
        else:
            self.current_player_index = (self.current_player_index + 1) % len(
                self.players
            )

    def _change_status(self, new_status: Status) -> None:
        self.status = new_status
