from __future__ import annotations

from collections import deque
from types import SimpleNamespace

import av

from mvflow.codec import CompressedPacket, DecodeResult


class FakeDecoder:
    """Scripted stand-in for PyAVDecoder.

    ``responses`` are consumed one per decode() call on packet data, ``flush``
    one per end-of-stream call; an Exception instance in either is raised.
    """

    def __init__(self, packets=(), responses=(), flush=(), stream_index=0, width=64, height=48):
        self.stream_index = stream_index
        self.width = width
        self.height = height
        self._packets = deque(packets)
        self._responses = deque(responses)
        self._flush = deque(flush)
        self.calls: list[int | None] = []

    def read_packet(self):
        return self._packets.popleft() if self._packets else None

    def decode(self, packet, data):
        self.calls.append(None if data is None else len(data))
        queue = self._flush if data is None else self._responses
        result = queue.popleft() if queue else DecodeResult(0 if data is None else len(data), None)
        if isinstance(result, Exception):
            raise result
        return result


def packet(size: int, stream_index: int = 0) -> CompressedPacket:
    return CompressedPacket(stream_index=stream_index, data=bytes(size))


def mv(src_x, src_y, dst_x, dst_y):
    return SimpleNamespace(src_x=src_x, src_y=src_y, dst_x=dst_x, dst_y=dst_y)


def fake_frame(pts=None, dts=None, pict_type="P", vectors=None):
    side_data = {} if vectors is None else {"MOTION_VECTORS": vectors}
    return SimpleNamespace(pts=pts, dts=dts, pict_type=SimpleNamespace(name=pict_type), side_data=side_data)


def decode_error() -> av.error.FFmpegError:
    return av.error.FFmpegError(-1, "Invalid data found when processing input")


def one_frame_per_packet(frames, width=64, height=48) -> FakeDecoder:
    """Decoder that turns each 8-byte packet into exactly one of ``frames``."""
    return FakeDecoder(
        packets=[packet(8) for _ in frames],
        responses=[DecodeResult(8, f) for f in frames],
        width=width,
        height=height,
    )
