"""REST endpoints for the waiting queue and the current game. Clients poll the GET routes to stay up to date."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_service
from src.api.models import (
    GameResponse,
    JoinQueueRequest,
    JoinQueueResponse,
    MoveRequest,
    QueueResponse,
    StartGameResponse,
)
from src.services.game_service import TicTacToeService

router = APIRouter(prefix="/api", tags=["tictactoe"])


# --- QUEUE ---
@router.post(
    "/queue", response_model=JoinQueueResponse, status_code=status.HTTP_201_CREATED
)
def join_queue(
    request: JoinQueueRequest, service: TicTacToeService = Depends(get_service)
) -> JoinQueueResponse:
    return service.join_queue(request)


@router.get("/queue", response_model=QueueResponse)
def get_queue(service: TicTacToeService = Depends(get_service)) -> QueueResponse:
    return service.get_queue()


# --- GAME ---
@router.get("/game", response_model=Optional[GameResponse])
def get_game(service: TicTacToeService = Depends(get_service)) -> Optional[GameResponse]:
    """The active game, else the finished game, else null."""
    return service.get_game()


@router.post(
    "/game/start",
    response_model=StartGameResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_game(service: TicTacToeService = Depends(get_service)) -> StartGameResponse:
    return service.start_game()


@router.post("/game/moves", response_model=GameResponse)
def make_move(
    request: MoveRequest, service: TicTacToeService = Depends(get_service)
) -> GameResponse:
    return service.make_move(request)


@router.post("/game/reset", response_model=QueueResponse)
def reset_game(service: TicTacToeService = Depends(get_service)) -> QueueResponse:
    """Finished game is removed and its players are put back in the queue."""
    return service.reset_game()
