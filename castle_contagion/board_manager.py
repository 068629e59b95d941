"""Board-level helpers for the Castle Contagion rules engine.

Index/coordinate conversion, directional stepping with optional
wrap-around, and orthogonal neighbour enumeration over an ``N×N`` board
stored row-major. Everything here is plain arithmetic over the board
size; the only failure mode is constructing a board outside the
supported size range.
"""
from __future__ import annotations

from typing import NamedTuple

from .errors import ValidationError
from .models import BoardState, CastleState, Direction

__all__ = ["BoardManager", "Coord", "MIN_BOARD_SIZE", "MAX_BOARD_SIZE"]

MIN_BOARD_SIZE = 4
MAX_BOARD_SIZE = 8

# (row delta, col delta) per direction
_DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


class Coord(NamedTuple):
    row: int
    col: int


class BoardManager:
    """Helper for board‑level operations.

    It is side‑effect‑free; callers pass in sizes, indices or
    ``BoardState`` instances and receive derived views or new value
    objects.
    """

    @staticmethod
    def create_empty_castle() -> CastleState:
        return CastleState(owner=None, contagion={})

    @staticmethod
    def create_board(size: int) -> BoardState:
        """Return an all-empty ``size``×``size`` board.

        Raises:
            ValidationError: if ``size`` is outside [4, 8].
        """
        if size < MIN_BOARD_SIZE or size > MAX_BOARD_SIZE:
            raise ValidationError(
                f"Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}",
                context={"size": size},
            )
        return BoardState(
            size=size,
            cells=[BoardManager.create_empty_castle() for _ in range(size * size)],
        )

    @staticmethod
    def to_index(size: int, row: int, col: int) -> int:
        return row * size + col

    @staticmethod
    def to_coord(size: int, index: int) -> Coord:
        return Coord(row=index // size, col=index % size)

    @staticmethod
    def next_index_in_direction(
        size: int,
        index: int,
        direction: Direction,
        wrap_around: bool,
    ) -> int | None:
        """Return the index one step from ``index`` in ``direction``.

        With ``wrap_around`` the step re-enters from the opposite edge;
        without it, stepping off the board returns ``None``. An
        out-of-range ``index`` also returns ``None`` so a bad index can
        never be wrapped back onto the board.
        """
        if index < 0 or index >= size * size:
            return None

        row, col = BoardManager.to_coord(size, index)
        dr, dc = _DIRECTION_DELTAS[Direction(direction)]
        nr = row + dr
        nc = col + dc

        if wrap_around:
            return BoardManager.to_index(size, nr % size, nc % size)

        if nr < 0 or nr >= size or nc < 0 or nc >= size:
            return None

        return BoardManager.to_index(size, nr, nc)

    @staticmethod
    def orthogonal_neighbor_indices(
        size: int, index: int, wrap_around: bool
    ) -> list[int]:
        """Return neighbours in up, down, left, right order."""
        neighbors: list[int] = []
        for direction in _DIRECTION_DELTAS:
            nxt = BoardManager.next_index_in_direction(
                size, index, direction, wrap_around
            )
            if nxt is not None:
                neighbors.append(nxt)
        return neighbors

    @staticmethod
    def empty_cell_indices(board: BoardState) -> list[int]:
        """Indices of unowned cells, ascending. Turn-director spawn candidates."""
        return [i for i, cell in enumerate(board.cells) if cell.owner is None]

    @staticmethod
    def owned_cell_counts(board: BoardState) -> dict[str, int]:
        """Full rescan of cell ownership, for invariant checks only."""
        counts: dict[str, int] = {}
        for cell in board.cells:
            if cell.owner is not None:
                counts[cell.owner] = counts.get(cell.owner, 0) + 1
        return counts
