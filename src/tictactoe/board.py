"""The Game board: a square grid of cells, each holding the mark (player name) that occupies it or None."""

from dataclasses import dataclass
from typing import Self

from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import Grid, Mark, PlayerName


@dataclass
class Board:
    cells: Grid

    @classmethod
    def empty(cls, size: int) -> Self:
        """A size x size board without any marks."""
        if size < 1:
            raise GameStateError(f"Board size must be positive, got {size}.")
        return cls([[None for _ in range(size)] for _ in range(size)])

    @classmethod
    def from_rows(cls, rows: Grid) -> Self:
        """Construct from stored rows. The rows are copied, so the board never aliases stored data."""
        size = len(rows)
        if size == 0 or any(len(row) != size for row in rows):
            raise GameStateError(
                f"Board must be square, got row lengths {[len(row) for row in rows]}."
            )
        return cls([list(row) for row in rows])

    def to_rows(self) -> Grid:
        return [list(row) for row in self.cells]

    @property
    def size(self) -> int:
        return len(self.cells)

    def is_on_board(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def mark_at(self, row: int, col: int) -> Mark:
        self._assert_on_board(row, col)
        return self.cells[row][col]

    def is_empty_at(self, row: int, col: int) -> bool:
        return self.mark_at(row, col) is None

    def is_full(self) -> bool:
        return all(cell is not None for row in self.cells for cell in row)

    def marks(self) -> set[PlayerName]:
        """All distinct marks currently placed."""
        return {cell for row in self.cells for cell in row if cell is not None}

    def with_mark(self, row: int, col: int, mark: PlayerName) -> Self:
        """Return a copy of the board with the mark placed. This board is left untouched."""
        self._assert_on_board(row, col)
        new_board = type(self)(self.to_rows())
        new_board.cells[row][col] = mark
        return new_board

    def _assert_on_board(self, row: int, col: int) -> None:
        if not self.is_on_board(row, col):
            raise IllegalMoveError(
                f"Cell ({row}, {col}) is not on the {self.size}x{self.size} board."
            )
