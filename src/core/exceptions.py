"""
Custom exceptions raised across layers.

Every error is a caller-facing validation failure: the API layer turns it into a JSON response using `code` and `status`.
"""


class GameError(Exception):
    """Top-level exception for anything that goes wrong while handling a game request."""

    code: str = "GAME_ERROR"
    status: int = 400

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Request could not be handled."


# --- QUEUE / LOBBY ---
class GameInProgressError(GameError):
    code = "GAME_IN_PROGRESS"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "Game is in progress. Please wait for the next game."


class GameAlreadyActiveError(GameError):
    code = "GAME_ALREADY_ACTIVE"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "A game is already in progress."


class NotEnoughPlayersError(GameError):
    code = "NOT_ENOUGH_PLAYERS"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "Need at least 2 players to start a game."


# --- PLAYING ---
class NoActiveGameError(GameError):
    code = "NO_ACTIVE_GAME"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "No active game."


class NotYourTurnError(GameError):
    code = "NOT_YOUR_TURN"
    status = 403

    @classmethod
    def default_message(cls) -> str:
        return "Not your turn."


class CellOccupiedError(GameError):
    code = "CELL_OCCUPIED"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "Cell is already occupied."


class IllegalMoveError(GameError):
    code = "ILLEGAL_MOVE"
    status = 422

    @classmethod
    def default_message(cls) -> str:
        return "Move is not allowed."


class NoFinishedGameError(GameError):
    code = "NO_FINISHED_GAME"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "No finished game to reset."


# --- OTHER LAYERS ---
class GameStateError(GameError):
    """Stored data cannot be turned into a consistent Game."""

    code = "GAME_STATE_ERROR"
    status = 500


class InvalidRequestError(GameError):
    code = "INVALID_REQUEST"
    status = 422


class RepositoryError(GameError):
    code = "REPOSITORY_ERROR"
    status = 500


class ConcurrentUpdateError(GameError):
    """Another request changed the same record between our read and our write. The service retries on a fresh read."""

    code = "CONCURRENT_UPDATE"
    status = 409

    @classmethod
    def default_message(cls) -> str:
        return "The game changed while handling the request. Please try again."
