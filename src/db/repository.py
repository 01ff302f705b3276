"""Protocol repositories (can implement later for other storage than SQL Alchemy)"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel, QueuedPlayerModel


class QueueRepository(Protocol):
    """Players waiting for the next game, in join order."""

    def list_players(self) -> list[QueuedPlayerModel]:
        """All queued players, oldest first."""
        ...

    def find_by_name(self, name: str) -> QueuedPlayerModel | None:
        """Queued player with this name, if any."""
        ...

    def add_player(self, player: QueuedPlayerModel) -> QueuedPlayerModel:
        """Append a player to the end of the queue. Raises ConcurrentUpdateError if the name was queued meanwhile."""
        ...

    def clear(self) -> None:
        """Remove every queued player."""
        ...


class GameRepository(Protocol):
    """Games by status. At most one game per status is stored."""

    def get_game_by_status(
        self, status: str, for_update: bool = False
    ) -> GameModel | None:
        """The game with the given status, if record exists. `for_update` takes a row lock until the transaction ends, where the database supports one."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID.

        Raises ConcurrentUpdateError if a game with the same status was stored meanwhile.
        """
        ...

    def update_game(
        self, game_id: UUID, game: GameModel, expected_version: int | None = None
    ) -> GameModel | None:
        """Overwrite an existing record with the new state.

        With `expected_version`, the write only happens if the record still has that version,
        otherwise ConcurrentUpdateError is raised. Returns None if the record does not exist.
        """
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        ...


class UnitOfWork(Protocol):
    """Transaction boundary shared by the repositories: nothing is persisted before `commit`."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
