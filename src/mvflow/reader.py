"""Parser for the text stream produced by OutputFormatter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np

from .output import ARRANGED, RAW


@dataclass
class ParsedFrame:
    """One frame read back from text.

    ``data`` is an (N, 4) array of ``src_x, src_y, dx, dy`` for raw output and
    a (2, rows, cols) array of dx and dy for arranged output.
    """

    pts: int
    index: int
    pict_type: str
    output_type: str
    data: np.ndarray

    @property
    def dx(self) -> np.ndarray:
        return self.data[0] if self.output_type == ARRANGED else self.data[:, 2]

    @property
    def dy(self) -> np.ndarray:
        return self.data[1] if self.output_type == ARRANGED else self.data[:, 3]


def parse_header(line: str) -> dict[str, str]:
    if not line.startswith("#"):
        raise ValueError(f"Not a frame header: {line!r}")
    fields: dict[str, str] = {}
    for token in line[1:].split():
        key, sep, value = token.partition("=")
        if not sep:
            raise ValueError(f"Malformed header field {token!r} in {line!r}")
        fields[key] = value
    for key in ("pts", "frame_index", "pict_type", "output_type", "shape"):
        if key not in fields:
            raise ValueError(f"Header is missing '{key}': {line!r}")
    return fields


def _parse_shape(value: str) -> tuple[int, int]:
    rows, sep, cols = value.partition("x")
    if not sep:
        raise ValueError(f"Malformed shape {value!r}")
    return int(rows), int(cols)


def _read_rows(lines: Iterator[str], count: int, width: int) -> np.ndarray:
    rows = []
    for _ in range(count):
        line = next(lines, None)
        if line is None:
            raise ValueError("Unexpected end of input inside a frame")
        values = [int(v) for v in line.split()]
        if len(values) != width:
            raise ValueError(f"Expected {width} values, got {len(values)}: {line!r}")
        rows.append(values)
    return np.array(rows, dtype=np.int64).reshape(count, width)


def parse_frames(lines: Iterable[str]) -> Iterator[ParsedFrame]:
    """Yield frames from an iterable of text lines (a file object works)."""
    it = (line.rstrip("\n") for line in lines)
    for line in it:
        if not line.strip():
            continue
        header = parse_header(line)
        rows, cols = _parse_shape(header["shape"])
        output_type = header["output_type"]
        if output_type == RAW:
            data = _read_rows(it, rows, cols)
        elif output_type == ARRANGED:
            data = np.stack([_read_rows(it, rows, cols), _read_rows(it, rows, cols)])
        else:
            raise ValueError(f"Unknown output_type {output_type!r}")
        yield ParsedFrame(
            pts=int(header["pts"]),
            index=int(header["frame_index"]),
            pict_type=header["pict_type"],
            output_type=output_type,
            data=data,
        )
