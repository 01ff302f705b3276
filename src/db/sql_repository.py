"""Implementation of the repositories using SQLAlchemy.

The repositories only flush; `SQLUnitOfWork` decides when a transaction is committed or rolled back.
Writes that race with another request surface as ConcurrentUpdateError, never as a silently lost update.
"""

from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.core.exceptions import ConcurrentUpdateError
from src.core.models import GameModel, QueuedPlayerModel
from src.db.schema import DBGame, DBQueuedPlayer, utc_now


class SQLQueueRepository:
    """Queued players stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def list_players(self) -> list[QueuedPlayerModel]:
        """All queued players, oldest first."""
        query = select(DBQueuedPlayer).order_by(DBQueuedPlayer.seq)
        return [self._to_model(player_db) for player_db in self.db.scalars(query)]

    def find_by_name(self, name: str) -> QueuedPlayerModel | None:
        query = select(DBQueuedPlayer).where(DBQueuedPlayer.name == name)
        player_db = self.db.scalar(query)
        if player_db:
            return self._to_model(player_db)
        return None

    def add_player(self, player: QueuedPlayerModel) -> QueuedPlayerModel:
        """Append a player to the end of the queue."""
        player_db = DBQueuedPlayer(player_id=player.player_id, name=player.name)
        self.db.add(player_db)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentUpdateError(
                f"Player {player.name!r} was queued by another request."
            ) from exc
        return self._to_model(player_db)

    def clear(self) -> None:
        """Remove every queued player."""
        self.db.execute(delete(DBQueuedPlayer))
        self.db.flush()

    def _to_model(self, player_db: DBQueuedPlayer) -> QueuedPlayerModel:
        return QueuedPlayerModel(name=player_db.name, player_id=player_db.player_id)


class SQLGameRepository:
    """Games stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game_by_status(
        self, status: str, for_update: bool = False
    ) -> GameModel | None:
        """The game with the given status, if record exists."""
        query = select(DBGame).where(DBGame.status == status)
        if for_update:
            # SELECT ... FOR UPDATE is not emitted on SQLite: there, only the version check in update_game protects the read
            query = query.with_for_update()
        game_db = self.db.scalar(query)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""

        new_id = uuid4()
        game_db = DBGame(
            id=new_id,
            status=game.status,
            players=list(game.players),
            board=[list(row) for row in game.board],
            current_player_index=game.current_player_index,
            winner=game.winner,
        )
        if game.created_at is not None:
            game_db.created_at = game.created_at
        self.db.add(game_db)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # unique index on status: another request stored a game with this status first
            raise ConcurrentUpdateError(
                f"A game with status {game.status!r} was stored by another request."
            ) from exc
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(
        self, game_id: UUID, game: GameModel, expected_version: int | None = None
    ) -> GameModel | None:
        """Overwrite an existing record with the new state, optionally only if it still has `expected_version`."""
        criteria = [DBGame.id == game_id]
        if expected_version is not None:
            criteria.append(DBGame.version == expected_version)

        result = self.db.execute(
            update(DBGame)
            .where(*criteria)
            .values(
                status=game.status,
                players=list(game.players),
                board=[list(row) for row in game.board],
                current_player_index=game.current_player_index,
                winner=game.winner,
                version=DBGame.version + 1,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            if expected_version is not None and self._fetch_game(game_id) is not None:
                raise ConcurrentUpdateError(
                    f"Game with {game_id=} changed since version {expected_version}."
                )
            return None

        game_db = self.db.get(DBGame, game_id, populate_existing=True)
        if game_db is None:
            return None
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.flush()
        return game_model

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            status=game_db.status,
            players=list(game_db.players),
            board=[list(row) for row in game_db.board],
            current_player_index=game_db.current_player_index,
            winner=game_db.winner,
            game_id=game_db.id,
            version=game_db.version,
            created_at=game_db.created_at,
            updated_at=game_db.updated_at,
        )


class SQLUnitOfWork:
    """Commit / roll back everything the repositories sharing this session have flushed."""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
