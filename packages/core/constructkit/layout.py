"""Default canvas placement for composition instances."""

from __future__ import annotations

import math

from constructkit.spec import Position

GRID_ORIGIN = (100.0, 100.0)
CELL_WIDTH = 300.0
CELL_HEIGHT = 200.0


def grid_columns(total: int) -> int:
    return max(1, math.ceil(math.sqrt(total)))


def grid_position(index: int, total: int) -> Position:
    """Place instance ``index`` of ``total`` on a square-ish grid, row-major."""
    columns = grid_columns(total)
    row, col = divmod(index, columns)
    return Position(x=GRID_ORIGIN[0] + col * CELL_WIDTH, y=GRID_ORIGIN[1] + row * CELL_HEIGHT)
