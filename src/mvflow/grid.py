"""GridAggregator — buckets sparse motion vectors into fixed-size dx/dy matrices."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .extract import DecodedFrame

GRID_STEP = 16
MAX_GRID_SIZE = 512


def grid_shape(
    width: int,
    height: int,
    cell_size: int = GRID_STEP,
    max_grid_size: int | None = MAX_GRID_SIZE,
) -> tuple[int, int]:
    """Return (rows, cols) for a stream; ``max_grid_size=None`` removes the ceiling."""
    rows = int(height) // cell_size
    cols = int(width) // cell_size
    if max_grid_size is not None:
        rows = min(rows, max_grid_size)
        cols = min(cols, max_grid_size)
    return rows, cols


@dataclass
class GridFrame:
    """Per-cell displacement of one frame.

    ``empty`` is True when no vector was assigned at all. A cell that received
    a zero displacement looks the same as a cell that received nothing.
    """

    pts: int
    index: int
    pict_type: str
    dx: np.ndarray
    dy: np.ndarray
    empty: bool = True
    interpolated: bool = False

    @property
    def shape(self) -> tuple[int, int]:
        return self.dx.shape  # type: ignore[return-value]

    @classmethod
    def blank(cls, pts: int, index: int, pict_type: str, shape: tuple[int, int]) -> GridFrame:
        return cls(
            pts=pts,
            index=index,
            pict_type=pict_type,
            dx=np.zeros(shape, dtype=np.int32),
            dy=np.zeros(shape, dtype=np.int32),
        )


@dataclass
class GridAggregator:
    """Maps each frame's vectors onto a grid whose shape is fixed per stream."""

    width: int
    height: int
    cell_size: int = GRID_STEP
    max_grid_size: int | None = MAX_GRID_SIZE
    shape: tuple[int, int] = field(init=False)

    def __post_init__(self) -> None:
        if self.cell_size < 1:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        self.shape = grid_shape(self.width, self.height, self.cell_size, self.max_grid_size)

    def cell_of(self, src_x: int, src_y: int) -> tuple[int, int]:
        """Cell holding a source position, clipped into the grid."""
        rows, cols = self.shape
        row = min(max(src_y // self.cell_size, 0), rows - 1)
        col = min(max(src_x // self.cell_size, 0), cols - 1)
        return row, col

    def aggregate(self, frame: DecodedFrame) -> GridFrame:
        grid = GridFrame.blank(frame.pts, frame.index, frame.pict_type, self.shape)
        if not frame.vectors:
            return grid

        grid.empty = False
        rows, cols = self.shape
        if rows == 0 or cols == 0:
            return grid

        vectors = np.array(frame.vectors, dtype=np.int64).reshape(-1, 4)
        row = np.clip(vectors[:, 1] // self.cell_size, 0, rows - 1)
        col = np.clip(vectors[:, 0] // self.cell_size, 0, cols - 1)
        flat = row * cols + col

        # Keep only the last vector written to each cell.
        _, last_from_end = np.unique(flat[::-1], return_index=True)
        last = len(flat) - 1 - last_from_end

        grid.dx.flat[flat[last]] = vectors[last, 2]
        grid.dy.flat[flat[last]] = vectors[last, 3]
        return grid
