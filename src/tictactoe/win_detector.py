"""
Win detection for a square board of arbitrary size.

A move wins when it completes a run of consecutive marks as long as the board side,
along the row, column, main diagonal or anti-diagonal through the cell that was just played.

NOTE this is an incremental check: only lines through (row, col) are inspected, so it must be called with the cell just played.
"""

from typing import Iterator

from src.core.shared_types import Grid, PlayerName

Cell = tuple[int, int]


def check_win(board: Grid, row: int, col: int, mark: PlayerName) -> bool:
    """Does the mark at (row, col) complete a winning line? Never mutates the board."""
    win_count = len(board)

    lines = (
        _row_cells(board, row),
        _column_cells(board, col),
        _main_diagonal_cells(board, row, col),
        _anti_diagonal_cells(board, row, col),
    )
    return any(_has_run(board, line, mark, win_count) for line in lines)


def _has_run(board: Grid, line: Iterator[Cell], mark: PlayerName, win_count: int) -> bool:
    """Scan the line from one end to the other, counting consecutive cells holding the mark."""
    count = 0
    for r, c in line:
        if board[r][c] == mark:
            count += 1
            if count == win_count:
                return True
        else:
            count = 0
    return False


def _row_cells(board: Grid, row: int) -> Iterator[Cell]:
    for c in range(len(board)):
        yield row, c


def _column_cells(board: Grid, col: int) -> Iterator[Cell]:
    for r in range(len(board)):
        yield r, col


def _main_diagonal_cells(board: Grid, row: int, col: int) -> Iterator[Cell]:
    """Top-left to bottom-right. Walk to the top-left-most cell first, then scan forward."""
    size = len(board)
    r, c = row, col
    while r > 0 and c > 0:
        r -= 1
        c -= 1
    while r < size and c < size:
        yield r, c
        r += 1
        c += 1


def _anti_diagonal_cells(board: Grid, row: int, col: int) -> Iterator[Cell]:
    """Top-right to bottom-left. Walk to the top-right-most cell first, then scan forward."""
    size = len(board)
    r, c = row, col
    while r > 0 and c < size - 1:
        r -= 1
        c += 1
    while r < size and c >= 0:
        yield r, c
        r += 1
        c -= 1
