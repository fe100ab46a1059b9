"""OutputFormatter — text rendering of raw vector lists and grid frames."""

from __future__ import annotations

from typing import Iterable, TextIO

import numpy as np

from .extract import DecodedFrame
from .grid import GridFrame

RAW = "raw"
ARRANGED = "arranged"


def format_header(pts: int, index: int, pict_type: str, output_type: str, shape: tuple[int, int]) -> str:
    rows, cols = shape
    return (
        f"# pts={pts} frame_index={index} pict_type={pict_type} "
        f"output_type={output_type} shape={rows}x{cols}"
    )


def format_raw(frame: DecodedFrame) -> list[str]:
    """Header plus one ``src_x src_y dx dy`` line per vector."""
    lines = [format_header(frame.pts, frame.index, frame.pict_type, RAW, (len(frame.vectors), 4))]
    lines.extend(f"{mv.src_x}\t{mv.src_y}\t{mv.dx}\t{mv.dy}" for mv in frame.vectors)
    return lines


def _matrix_lines(matrix: np.ndarray) -> list[str]:
    # Every value carries a trailing tab, matching existing consumers of this format.
    return ["".join(f"{v}\t" for v in row) for row in matrix.tolist()]


def format_grid(frame: GridFrame) -> list[str]:
    """Header, then the dx rows, then the dy rows."""
    lines = [format_header(frame.pts, frame.index, frame.pict_type, ARRANGED, frame.shape)]
    lines.extend(_matrix_lines(frame.dx))
    lines.extend(_matrix_lines(frame.dy))
    return lines


class OutputFormatter:
    """Writes frames to a text stream in either raw or arranged mode."""

    def __init__(self, out: TextIO, raw: bool = False) -> None:
        self.out = out
        self.raw = raw
        self.frames_written = 0

    @property
    def mode(self) -> str:
        return RAW if self.raw else ARRANGED

    def write(self, frame: DecodedFrame | GridFrame) -> None:
        if self.raw:
            if not isinstance(frame, DecodedFrame):
                raise TypeError(f"Raw mode expects DecodedFrame, got {type(frame).__name__}")
            lines = format_raw(frame)
        else:
            if not isinstance(frame, GridFrame):
                raise TypeError(f"Arranged mode expects GridFrame, got {type(frame).__name__}")
            lines = format_grid(frame)
        self.out.write("\n".join(lines) + "\n")
        self.frames_written += 1

    def write_all(self, frames: Iterable[DecodedFrame | GridFrame]) -> int:
        for frame in frames:
            self.write(frame)
        return self.frames_written
