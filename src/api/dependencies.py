"""FastAPI dependencies: one database session, and one service built on it, per request."""

from fastapi import Depends
from sqlalchemy.orm import Session

from src.db.database import get_db
from src.db.sql_repository import SQLGameRepository, SQLQueueRepository, SQLUnitOfWork
from src.services.game_service import TicTacToeService


def get_service(db: Session = Depends(get_db)) -> TicTacToeService:
    return TicTacToeService(
        queue_repository=SQLQueueRepository(db),
        game_repository=SQLGameRepository(db),
        unit_of_work=SQLUnitOfWork(db),
    )
