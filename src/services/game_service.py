"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
import threading
from contextlib import contextmanager
from functools import wraps
from typing import Callable, ContextManager, Iterator, Optional, TypeVar
from uuid import UUID, uuid4

from src.api.models import (
    GameResponse,
    JoinQueueRequest,
    JoinQueueResponse,
    MoveRequest,
    QueuedPlayerResponse,
    QueueResponse,
    StartGameResponse,
)
from src.core.exceptions import (
    ConcurrentUpdateError,
    GameAlreadyActiveError,
    GameInProgressError,
    NoActiveGameError,
    NoFinishedGameError,
    RepositoryError,
)
from src.core.models import GameModel, QueuedPlayerModel
from src.core.shared_types import Status
from src.db.repository import GameRepository, QueueRepository, UnitOfWork
from src.tictactoe.game import MIN_PLAYERS, Game

logger = logging.getLogger(__name__)

# Serializes every mutating operation of every service instance in this process:
# the queue and the single current game are one shared resource each.
_STATE_LOCK = threading.RLock()

# Other processes are not covered by the lock: their conflicting writes are detected by the repositories
# (ConcurrentUpdateError) and the operation is run again on a fresh read.
MAX_ATTEMPTS = 3

T = TypeVar("T")


def generate_player_id() -> str:
    return str(uuid4())


def retry_on_conflict(method: Callable[..., T]) -> Callable[..., T]:
    """Re-run a service operation when another request won the race for the same record."""

    @wraps(method)
    def wrapper(*args, **kwargs) -> T:
        for attempt in range(1, MAX_ATTEMPTS):
            try:
                return method(*args, **kwargs)
            except ConcurrentUpdateError as exc:
                logger.info(
                    "%s conflicted with another request (attempt %d): %s",
                    method.__name__,
                    attempt,
                    exc,
                )
        return method(*args, **kwargs)

    return wrapper


class TicTacToeService:
    """Orchestration of layers for the queue and the single current game."""

    def __init__(
        self,
        queue_repository: QueueRepository,
        game_repository: GameRepository,
        unit_of_work: UnitOfWork,
        lock: Optional[ContextManager] = None,
    ) -> None:
        self.queue = queue_repository
        self.games = game_repository
        self.uow = unit_of_work
        self._lock = lock if lock is not None else _STATE_LOCK

    # -- API routes logic ---
    @retry_on_conflict
    def join_queue(self, request: JoinQueueRequest) -> JoinQueueResponse:
        """A player asks to wait for the next game. Joining twice with the same name returns the same player ID."""
        with self._transaction():
            if self.games.get_game_by_status(Status.ACTIVE) is not None:
                raise GameInProgressError()

            existing = self.queue.find_by_name(request.name)
            if existing is not None:
                return JoinQueueResponse(player_id=existing.player_id)

            player = self.queue.add_player(
                QueuedPlayerModel(name=request.name, player_id=generate_player_id())
            )
        logger.info("Player %r joined the queue as %s", player.name, player.player_id)
        return JoinQueueResponse(player_id=player.player_id)

    def get_queue(self) -> QueueResponse:
        """
        Retrieve the waiting players, in join order.
        ----
        Used in "polling" loop by frontend to re-render the waiting room.
        """
        return self._create_queue_response(self.queue.list_players())

    def get_game(self) -> Optional[GameResponse]:
        """
        Retrieve the current game: the active one if any, else the finished one, else None.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game_model = self.games.get_game_by_status(Status.ACTIVE)
        if game_model is None:
            game_model = self.games.get_game_by_status(Status.FINISHED)
        if game_model is None:
            return None
        return self._create_game_response(game_model)

    @retry_on_conflict
    def start_game(self) -> StartGameResponse:
        """Everybody in the queue starts playing, in join order. The previous finished game is removed."""
        with self._transaction():
            if self.games.get_game_by_status(Status.ACTIVE, for_update=True) is not None:
                raise GameAlreadyActiveError()

            queued = self.queue.list_players()
            if len(queued) < MIN_PLAYERS and self.games.get_game_by_status(Status.ACTIVE) is not None:
                # the queue was drained by a start that committed after our first check
                raise GameAlreadyActiveError()
            # raises NotEnoughPlayersError before anything is written
            new_game = Game.new_game([player.name for player in queued])

            finished = self.games.get_game_by_status(Status.FINISHED, for_update=True)
            if finished is not None:
                self.games.delete_game(self._game_id(finished))

            _, game_id = self.games.create_game(new_game.to_model())
            self.queue.clear()
        logger.info(
            "Game %s started with players %s on a %dx%d board",
            game_id,
            new_game.players,
            new_game.board.size,
            new_game.board.size,
        )
        return StartGameResponse(game_id=game_id)

    @retry_on_conflict
    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt. Validation and update happen against the game record as read: a concurrent move makes the write fail and the move is validated again."""
        with self._transaction():
            stored_model = self.games.get_game_by_status(Status.ACTIVE, for_update=True)
            if stored_model is None:
                raise NoActiveGameError()
            game_id = self._game_id(stored_model)

            # Create a new Game instance from the retrieved GameModel
            game = Game.from_model(stored_model)

            # Attempt the move
            game.make_move(request.player_name, request.row, request.col)

            # store in repository
            after_move = self.games.update_game(
                game_id, game.to_model(), expected_version=stored_model.version
            )
            if after_move is None:
                # removed by a concurrent reset/start: the retry reports that there is no active game
                raise ConcurrentUpdateError(f"Game with {game_id=} disappeared during the move.")

        if game.status == Status.FINISHED:
            outcome = f"won by {game.winner!r}" if game.winner else "a draw"
            logger.info("Game %s finished: %s", game_id, outcome)
        return self._create_game_response(after_move)

    @retry_on_conflict
    def reset_game(self) -> QueueResponse:
        """The finished game is removed and its players return to the queue (with new player IDs)."""
        with self._transaction():
            finished = self.games.get_game_by_status(Status.FINISHED, for_update=True)
            if finished is None:
                raise NoFinishedGameError()

            for name in finished.players:
                # somebody may have joined under the same name while the game was finished
                if self.queue.find_by_name(name) is None:
                    self.queue.add_player(
                        QueuedPlayerModel(name=name, player_id=generate_player_id())
                    )
            self.games.delete_game(self._game_id(finished))
            queued = self.queue.list_players()
        logger.info("Game %s reset, %d players back in the queue", finished.game_id, len(queued))
        return self._create_queue_response(queued)

    # -- Internal helpers --
    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Run the block as one serialized transaction: commit at the end, roll back on any error."""
        with self._lock:
            try:
                yield
            except Exception as exc:
                self.uow.rollback()
                logger.warning("Transaction rolled back: %s", exc)
                raise
            self.uow.commit()

    def _game_id(self, model: GameModel) -> UUID:
        if model.game_id is None:
            raise RepositoryError("Stored game has no ID.")
        return model.game_id

    def _create_queue_response(self, players: list[QueuedPlayerModel]) -> QueueResponse:
        return QueueResponse(
            players=[
                QueuedPlayerResponse(name=player.name, player_id=player.player_id)
                for player in players
            ]
        )

    def _create_game_response(self, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse."""
        game = Game.from_model(model)
        return GameResponse(
            game_id=self._game_id(model),
            status=game.status,
            players=game.players,
            board=game.board.to_rows(),
            board_size=game.board.size,
            current_player_index=game.current_player_index,
            current_player=game.current_player,
            winner=game.winner,
            is_draw=game.is_draw,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
