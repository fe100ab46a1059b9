"""PyAVDecoder — demuxing and decoding with motion-vector export via PyAV."""

from __future__ import annotations

import sys
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import av

from .errors import SetupError


def _log(msg: str) -> None:
    """Log to stderr; stdout carries the data stream."""
    print(f"[PyAVDecoder] {msg}", file=sys.stderr, flush=True)


@dataclass
class CompressedPacket:
    """One compressed packet as handed out by the demuxer."""

    stream_index: int
    data: bytes
    pts: int | None = None
    dts: int | None = None
    handle: Any = field(default=None, repr=False, compare=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class DecodeResult:
    consumed: int
    frame: Any = None


class VideoDecoder(Protocol):
    """What FrameSource needs from a codec/demuxer."""

    stream_index: int
    width: int
    height: int

    def read_packet(self) -> CompressedPacket | None: ...

    def decode(self, packet: CompressedPacket | None, data: bytes | None) -> DecodeResult: ...


class PyAVDecoder:
    """Opens a container and decodes its first video stream with motion vectors exported.

    PyAV always consumes a packet whole and may hand back several frames for it.
    Frames beyond the first are queued and returned one per later call with
    ``consumed=0`` so the caller can keep pulling frames at byte granularity.
    """

    def __init__(self, video_path: str | Path) -> None:
        self.video_path = str(video_path)
        self._pending: deque[Any] = deque()
        self._flushed = False

        try:
            self._container = av.open(self.video_path)
        except (av.error.FFmpegError, OSError) as e:
            raise SetupError(f"Couldn't open file. Possibly it doesn't exist: {video_path} ({e})") from e

        if not self._container.streams:
            self.close()
            raise SetupError(f"Stream information not found: {video_path}")

        if not self._container.streams.video:
            self.close()
            raise SetupError(f"Video stream not found: {video_path}")

        self._stream = self._container.streams.video[0]
        codec_context = self._stream.codec_context
        codec_context.options = {"flags2": "+export_mvs"}
        try:
            codec_context.open(strict=False)
        except (av.error.FFmpegError, ValueError) as e:
            self.close()
            raise SetupError(f"Codec not found or cannot open codec: {e}") from e

        self.stream_index = self._stream.index
        self.width = int(codec_context.width)
        self.height = int(codec_context.height)
        self._codec_context = codec_context
        self._packets = self._container.demux()

        _log(
            f"Opened {self.video_path}: stream #{self.stream_index} "
            f"codec={codec_context.name} {self.width}x{self.height}"
        )

    def __enter__(self) -> PyAVDecoder:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        container = getattr(self, "_container", None)
        if container is not None:
            container.close()
            self._container = None

    def read_packet(self) -> CompressedPacket | None:
        """Return the next packet from any stream, or None at end of container."""
        for packet in self._packets:
            # The demuxer emits an empty flush packet per stream at the end.
            if packet.size == 0:
                continue
            return CompressedPacket(
                stream_index=packet.stream.index,
                data=bytes(packet),
                pts=packet.pts,
                dts=packet.dts,
                handle=packet,
            )
        return None

    def decode(self, packet: CompressedPacket | None, data: bytes | None) -> DecodeResult:
        """Decode ``data`` (the unconsumed tail of ``packet``), or flush when ``data`` is None."""
        if self._pending:
            return DecodeResult(0, self._pending.popleft())

        if data is None:
            if self._flushed:
                return DecodeResult(0, None)
            self._flushed = True
            frames = self._codec_context.decode(None)
            consumed = 0
        else:
            frames = self._codec_context.decode(self._to_av_packet(packet, data))
            consumed = len(data)

        self._pending.extend(frames)
        frame = self._pending.popleft() if self._pending else None
        return DecodeResult(consumed, frame)

    @staticmethod
    def _to_av_packet(packet: CompressedPacket | None, data: bytes) -> av.Packet:
        if packet is not None and packet.handle is not None and len(data) == packet.size:
            return packet.handle
        av_packet = av.Packet(data)
        if packet is not None:
            av_packet.pts = packet.pts
            av_packet.dts = packet.dts
            if packet.handle is not None:
                av_packet.time_base = packet.handle.time_base
        return av_packet
