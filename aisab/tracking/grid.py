"""
AisAB - Spatial Grid

Fixed-size latitude/longitude discretization. Cell ids are row-major
integers counted from the south-west corner (-90, -180).
"""

import math
from typing import Tuple

from aisab.tracking.track import Position


class Grid:
    """
    Square-degree grid covering the globe.

    Example:
        >>> grid = Grid(resolution=0.5)
        >>> grid.cell_id(Position(55.2, 11.9))
        209183
    """

    def __init__(self, resolution: float = 0.005):
        if resolution <= 0:
            raise ValueError(f"Grid resolution must be positive, got {resolution}")
        self._resolution = resolution
        self._rows = int(math.ceil(180.0 / resolution))
        self._cols = int(math.ceil(360.0 / resolution))

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def cell_count(self) -> int:
        return self._rows * self._cols

    def row_col(self, position: Position) -> Tuple[int, int]:
        """Row and column of the cell containing position (clamped to the grid)."""
        row = int(math.floor((position.latitude + 90.0) / self._resolution))
        col = int(math.floor((position.longitude + 180.0) / self._resolution))
        row = min(max(row, 0), self._rows - 1)
        col = min(max(col, 0), self._cols - 1)
        return row, col

    def cell_id(self, position: Position) -> int:
        row, col = self.row_col(position)
        return row * self._cols + col

    def cell_center(self, cell_id: int) -> Position:
        """Centre position of a cell."""
        row, col = divmod(cell_id, self._cols)
        return Position(
            latitude=-90.0 + (row + 0.5) * self._resolution,
            longitude=-180.0 + (col + 0.5) * self._resolution,
        )

    def __repr__(self) -> str:
        return f"Grid(resolution={self._resolution})"
