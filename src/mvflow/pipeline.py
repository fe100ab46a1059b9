"""Decode-to-output pipeline wiring."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Iterator, TextIO

from .codec import PyAVDecoder, VideoDecoder
from .extract import DecodedFrame, VectorExtractor
from .grid import GRID_STEP, MAX_GRID_SIZE, GridAggregator, GridFrame
from .interpolate import InterpolationBuffer
from .output import OutputFormatter
from .source import FrameSource


def _log(msg: str) -> None:
    print(f"[Pipeline] {msg}", file=sys.stderr, flush=True)


def iter_raw_frames(
    decoder: VideoDecoder | None = None,
    max_decode_failures: int = 8,
    strict: bool = False,
    source: FrameSource | None = None,
) -> Iterator[DecodedFrame]:
    """Yield every decoded frame of the video stream with its vectors, in decode order.

    Pass ``source`` to keep hold of the FrameSource and read its counters afterwards.
    """
    if source is None:
        if decoder is None:
            raise ValueError("Either decoder or source is required")
        source = FrameSource(decoder, max_decode_failures=max_decode_failures, strict=strict)
    extractor = VectorExtractor()
    for frame in source:
        yield extractor.extract(frame)


def iter_grid_frames(
    decoder: VideoDecoder | None = None,
    cell_size: int = GRID_STEP,
    max_grid_size: int | None = MAX_GRID_SIZE,
    max_decode_failures: int = 8,
    strict: bool = False,
    source: FrameSource | None = None,
) -> Iterator[GridFrame]:
    """Yield grid frames in emission order, with isolated gap frames interpolated."""
    if source is None:
        if decoder is None:
            raise ValueError("Either decoder or source is required")
        source = FrameSource(decoder, max_decode_failures=max_decode_failures, strict=strict)
    aggregator = GridAggregator(source.decoder.width, source.decoder.height, cell_size, max_grid_size)
    rows, cols = aggregator.shape
    _log(f"Grid shape {rows}x{cols} ({cell_size}px cells)")

    buffer = InterpolationBuffer()
    for frame in iter_raw_frames(source=source):
        yield from buffer.push(aggregator.aggregate(frame))
    yield from buffer.flush()


def write_frames(
    decoder: VideoDecoder,
    out: TextIO,
    raw: bool = False,
    cell_size: int = GRID_STEP,
    max_grid_size: int | None = MAX_GRID_SIZE,
    max_decode_failures: int = 8,
    strict: bool = False,
) -> int:
    """Run one decoder through the selected mode into ``out``; returns frames written."""
    source = FrameSource(decoder, max_decode_failures=max_decode_failures, strict=strict)
    formatter = OutputFormatter(out, raw=raw)
    if raw:
        frames = iter_raw_frames(source=source)
    else:
        frames = iter_grid_frames(cell_size=cell_size, max_grid_size=max_grid_size, source=source)

    t0 = time.time()
    written = formatter.write_all(frames)
    _log(f"Wrote {written} {formatter.mode} frames in {time.time()-t0:.2f}s ({source.summary()})")
    return written


def run(
    video_path: str | Path,
    raw: bool = False,
    out: TextIO | None = None,
    cell_size: int = GRID_STEP,
    max_grid_size: int | None = MAX_GRID_SIZE,
    max_decode_failures: int = 8,
    strict: bool = False,
) -> int:
    """Decode ``video_path`` and write its motion vectors to ``out``.

    Returns the number of frames written. Raises SetupError before writing
    anything if the video cannot be opened.
    """
    if out is None:
        out = sys.stdout

    with PyAVDecoder(video_path) as decoder:
        return write_frames(
            decoder,
            out,
            raw=raw,
            cell_size=cell_size,
            max_grid_size=max_grid_size,
            max_decode_failures=max_decode_failures,
            strict=strict,
        )
