"""Unit tests for src/services/game_service.py"""

import threading
from typing import Generator
from uuid import UUID, uuid4

import pytest

from src.core.exceptions import (
    CellOccupiedError,
    ConcurrentUpdateError,
    GameAlreadyActiveError,
    GameError,
    GameInProgressError,
    NoActiveGameError,
    NoFinishedGameError,
    NotEnoughPlayersError,
    NotYourTurnError,
)
from src.core.models import GameModel, QueuedPlayerModel
from src.core.shared_types import Status
from src.tictactoe.game import Game
from src.services.game_service import (
    MAX_ATTEMPTS,
    GameResponse,
    JoinQueueRequest,
    MoveRequest,
    TicTacToeService,
)


# --- MOCK DEPENDENCIES ----
class MockQueueRepository:
    """Mock the QueueRepository using a list of queued players."""

    def __init__(self) -> None:
        self._players: list[QueuedPlayerModel] = []

    def list_players(self) -> list[QueuedPlayerModel]:
        return list(self._players)

    def find_by_name(self, name: str) -> QueuedPlayerModel | None:
        return next((p for p in self._players if p.name == name), None)

    def add_player(self, player: QueuedPlayerModel) -> QueuedPlayerModel:
        self._players.append(player)
        return player

    def clear(self) -> None:
        self._players = []


class MockGameRepository:
    """Mock the GameRepository using a dictionary of game models."""

    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}

    def get_game_by_status(
        self, status: str, for_update: bool = False
    ) -> GameModel | None:
        return next((g for g in self._games.values() if g.status == status), None)

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        game_id = uuid4()
        game.game_id = game_id
        game.version = 1
        self._games[game_id] = game
        return game, game_id

    def update_game(
        self, game_id: UUID, game: GameModel, expected_version: int | None = None
    ) -> GameModel | None:
        if game_id not in self._games:
            return None
        stored_version = self._games[game_id].version
        if expected_version is not None and expected_version != stored_version:
            raise ConcurrentUpdateError()
        game.game_id = game_id
        game.version = stored_version + 1
        self._games[game_id] = game
        return game

    def delete_game(self, game_id: UUID) -> GameModel | None:
        return self._games.pop(game_id, None)

    def all_games(self) -> list[GameModel]:
        return list(self._games.values())


class MockUnitOfWork:
    def __init__(self) -> None:
        self.commits = 0
        self.rollbacks = 0

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def queue_repo() -> MockQueueRepository:
    return MockQueueRepository()


@pytest.fixture
def game_repo() -> MockGameRepository:
    return MockGameRepository()


@pytest.fixture
def uow() -> MockUnitOfWork:
    return MockUnitOfWork()


@pytest.fixture
def service(
    queue_repo: MockQueueRepository, game_repo: MockGameRepository, uow: MockUnitOfWork
) -> Generator[TicTacToeService, None, None]:
    yield TicTacToeService(queue_repo, game_repo, uow, lock=threading.RLock())


def join(service: TicTacToeService, *names: str) -> list[str]:
    return [service.join_queue(JoinQueueRequest(name=name)).player_id for name in names]


def move(service: TicTacToeService, player: str, row: int, col: int) -> GameResponse:
    return service.make_move(MoveRequest(player_name=player, row=row, col=col))


def finish_with_win_for_a(service: TicTacToeService) -> None:
    for player, row, col in [("A", 0, 0), ("B", 1, 0), ("A", 0, 1), ("B", 1, 1), ("A", 0, 2)]:
        move(service, player, row, col)


# --- SERVICE - JOIN QUEUE ----
def test_join_queue(service: TicTacToeService, uow: MockUnitOfWork) -> None:
    (player_id,) = join(service, "A")
    queue = service.get_queue()
    assert [(p.name, p.player_id) for p in queue.players] == [("A", player_id)]
    assert uow.commits == 1


def test_join_is_idempotent_per_name(service: TicTacToeService) -> None:
    first = join(service, "A")
    second = join(service, "A")
    assert first == second
    assert len(service.get_queue().players) == 1


def test_join_keeps_queue_order(service: TicTacToeService) -> None:
    join(service, "C", "A", "B")
    assert [p.name for p in service.get_queue().players] == ["C", "A", "B"]


def test_join_refused_while_game_active(
    service: TicTacToeService, uow: MockUnitOfWork
) -> None:
    join(service, "A", "B")
    service.start_game()
    with pytest.raises(GameInProgressError):
        join(service, "C")
    assert service.get_queue().players == []
    assert uow.rollbacks == 1


def test_join_allowed_while_game_finished(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)
    join(service, "C")
    assert [p.name for p in service.get_queue().players] == ["C"]


# --- SERVICE - START GAME ----
def test_start_game(service: TicTacToeService, game_repo: MockGameRepository) -> None:
    join(service, "A", "B", "C")
    response = service.start_game()
    assert isinstance(response.game_id, UUID)

    # queue drained
    assert service.get_queue().players == []

    game = service.get_game()
    assert game is not None
    assert game.game_id == response.game_id
    assert game.status == Status.ACTIVE
    assert game.players == ["A", "B", "C"]
    assert game.board_size == 4
    assert game.board == [[None] * 4 for _ in range(4)]
    assert game.current_player_index == 0
    assert game.current_player == "A"
    assert game.winner is None
    assert len(game_repo.all_games()) == 1


@pytest.mark.parametrize("names", [(), ("A",)])
def test_start_needs_two_players(service: TicTacToeService, names: tuple[str, ...]) -> None:
    join(service, *names)
    with pytest.raises(NotEnoughPlayersError):
        service.start_game()
    assert len(service.get_queue().players) == len(names)
    assert service.get_game() is None


def test_cannot_start_twice(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    with pytest.raises(GameAlreadyActiveError):
        service.start_game()


def test_start_removes_finished_game(
    service: TicTacToeService, game_repo: MockGameRepository
) -> None:
    join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)

    join(service, "C", "D")
    response = service.start_game()
    games = game_repo.all_games()
    assert len(games) == 1
    assert games[0].game_id == response.game_id
    assert games[0].players == ["C", "D"]


# --- SERVICE - GET GAME ----
def test_no_game(service: TicTacToeService) -> None:
    assert service.get_game() is None


def test_finished_game_is_returned(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)
    game = service.get_game()
    assert game is not None
    assert game.status == Status.FINISHED
    assert game.winner == "A"
    assert game.current_player is None
    assert not game.is_draw


# --- SERVICE - MAKE MOVE ----
def test_make_move(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    response = move(service, "A", 1, 2)
    assert isinstance(response, GameResponse)
    assert response.board[1][2] == "A"
    assert response.current_player == "B"
    assert response.status == Status.ACTIVE

    # persisted
    game = service.get_game()
    assert game is not None
    assert game.board[1][2] == "A"
    assert game.current_player_index == 1


def test_move_without_game(service: TicTacToeService) -> None:
    with pytest.raises(NoActiveGameError):
        move(service, "A", 0, 0)


def test_move_after_game_finished(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)
    with pytest.raises(NoActiveGameError):
        move(service, "B", 2, 2)


def test_move_out_of_turn_is_not_persisted(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    with pytest.raises(NotYourTurnError):
        move(service, "B", 0, 0)
    game = service.get_game()
    assert game is not None
    assert game.board == [[None] * 3 for _ in range(3)]
    assert game.current_player == "A"


def test_move_on_occupied_cell_is_not_persisted(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    move(service, "A", 0, 0)
    with pytest.raises(CellOccupiedError):
        move(service, "B", 0, 0)
    game = service.get_game()
    assert game is not None
    assert game.board[0][0] == "A"
    assert game.current_player == "B"


def test_second_submission_of_same_move_is_rejected(service: TicTacToeService) -> None:
    """A double-submitted move sees the first result: the turn has already passed."""
    join(service, "A", "B")
    service.start_game()
    move(service, "A", 0, 0)
    with pytest.raises(NotYourTurnError):
        move(service, "A", 0, 0)


def test_example_scenario(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    move(service, "A", 0, 0)
    move(service, "B", 1, 1)
    move(service, "A", 0, 1)
    response = move(service, "B", 2, 2)
    assert response.status == Status.ACTIVE

    response = move(service, "A", 0, 2)
    assert response.status == Status.FINISHED
    assert response.winner == "A"


def test_draw(service: TicTacToeService) -> None:
    join(service, "A", "B")
    service.start_game()
    for player, row, col in [
        ("A", 0, 0),
        ("B", 0, 1),
        ("A", 0, 2),
        ("B", 1, 1),
        ("A", 1, 0),
        ("B", 1, 2),
        ("A", 2, 1),
        ("B", 2, 0),
    ]:
        move(service, player, row, col)
    response = move(service, "A", 2, 2)
    assert response.status == Status.FINISHED
    assert response.winner is None
    assert response.is_draw


# --- SERVICE - RESET GAME ----
def test_reset_game(service: TicTacToeService) -> None:
    old_ids = join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)

    queue = service.reset_game()
    assert [p.name for p in queue.players] == ["A", "B"]
    # fresh identities
    assert set(p.player_id for p in queue.players).isdisjoint(old_ids)
    assert service.get_game() is None

    # a new round can start
    service.start_game()
    game = service.get_game()
    assert game is not None
    assert game.players == ["A", "B"]


def test_reset_without_finished_game(service: TicTacToeService) -> None:
    with pytest.raises(NoFinishedGameError):
        service.reset_game()

    join(service, "A", "B")
    service.start_game()
    with pytest.raises(NoFinishedGameError):
        service.reset_game()


def test_reset_does_not_duplicate_names_already_queued(
    service: TicTacToeService,
) -> None:
    join(service, "A", "B")
    service.start_game()
    finish_with_win_for_a(service)
    (b_id,) = join(service, "B")

    queue = service.reset_game()
    assert [p.name for p in queue.players] == ["B", "A"]
    assert queue.players[0].player_id == b_id


def test_errors_are_game_errors(service: TicTacToeService) -> None:
    """Any top-level custom exception reaches the caller (API layer maps them to responses)."""
    with pytest.raises(GameError):
        service.reset_game()


# --- SERVICE - CONFLICTING WRITES ----
class RacingGameRepository(MockGameRepository):
    """Another request stores its move between this request's read and its write."""

    def __init__(self) -> None:
        super().__init__()
        self.rival_moves: list[tuple[str, int, int]] = []

    def update_game(
        self, game_id: UUID, game: GameModel, expected_version: int | None = None
    ) -> GameModel | None:
        if self.rival_moves:
            player, row, col = self.rival_moves.pop(0)
            rival = Game.from_model(self._games[game_id])
            rival.make_move(player, row, col)
            super().update_game(game_id, rival.to_model())
        return super().update_game(game_id, game, expected_version)


@pytest.fixture
def racing_repo() -> RacingGameRepository:
    return RacingGameRepository()


@pytest.fixture
def racing_service(
    queue_repo: MockQueueRepository, racing_repo: RacingGameRepository, uow: MockUnitOfWork
) -> TicTacToeService:
    return TicTacToeService(queue_repo, racing_repo, uow, lock=threading.RLock())


def test_move_losing_the_race_is_validated_again(
    racing_service: TicTacToeService, racing_repo: RacingGameRepository, uow: MockUnitOfWork
) -> None:
    """The rival's move is kept, and the retried move is refused by the turn check."""
    join(racing_service, "A", "B")
    racing_service.start_game()
    racing_repo.rival_moves.append(("A", 2, 2))

    with pytest.raises(NotYourTurnError):
        move(racing_service, "A", 0, 0)

    game = racing_service.get_game()
    assert game is not None
    assert game.board[2][2] == "A"
    assert game.board[0][0] is None
    assert game.current_player == "B"
    assert uow.rollbacks == 2


class AlwaysStaleGameRepository(MockGameRepository):
    """Every write finds the record changed."""

    def __init__(self) -> None:
        super().__init__()
        self.stale_writes = 0

    def update_game(
        self, game_id: UUID, game: GameModel, expected_version: int | None = None
    ) -> GameModel | None:
        if expected_version is None:
            return super().update_game(game_id, game)
        self.stale_writes += 1
        raise ConcurrentUpdateError()


def test_conflict_gives_up_after_max_attempts(
    queue_repo: MockQueueRepository, uow: MockUnitOfWork
) -> None:
    games = AlwaysStaleGameRepository()
    service = TicTacToeService(queue_repo, games, uow, lock=threading.RLock())
    join(service, "A", "B")
    service.start_game()

    with pytest.raises(ConcurrentUpdateError):
        move(service, "A", 0, 0)
    assert games.stale_writes == MAX_ATTEMPTS
    assert uow.rollbacks == MAX_ATTEMPTS
