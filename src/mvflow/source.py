"""FrameSource — pulls packets and drains each one into decoded frames."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, Iterator

import av

from .codec import CompressedPacket, VideoDecoder
from .errors import DecodeStalledError


def _log(msg: str) -> None:
    print(f"[FrameSource] {msg}", file=sys.stderr, flush=True)


class SourceState(Enum):
    AWAITING_PACKET = "awaiting_packet"
    DRAINING_PACKET = "draining_packet"
    FINISHED = "finished"


class FrameSource:
    """Lazy, finite, single-pass sequence of decoded frames for one stream.

    Every packet of the target stream is fed to the decoder until all of its
    bytes are consumed; a frame is yielded as soon as one attempt produces it,
    and the remaining bytes are retried on the next pull. Other streams'
    packets are discarded. Once the container is exhausted the decoder is
    flushed until it stops returning frames.

    A decode error on an attempt counts as "no frame". After
    ``max_decode_failures`` consecutive stalled attempts on the same packet
    the packet is dropped, or ``DecodeStalledError`` is raised when ``strict``
    is set.
    """

    def __init__(
        self,
        decoder: VideoDecoder,
        max_decode_failures: int = 8,
        strict: bool = False,
    ) -> None:
        if max_decode_failures < 1:
            raise ValueError(f"max_decode_failures must be >= 1, got {max_decode_failures}")
        self.decoder = decoder
        self.max_decode_failures = max_decode_failures
        self.strict = strict
        self.state = SourceState.AWAITING_PACKET

        self.packets_read = 0
        self.packets_skipped = 0
        self.packets_dropped = 0
        self.frames_produced = 0
        self.decode_failures = 0

        self._frames = self._run()

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        return next(self._frames)

    def _run(self) -> Iterator[Any]:
        target = self.decoder.stream_index
        while True:
            packet = self.decoder.read_packet()
            if packet is None:
                break
            self.packets_read += 1
            if packet.stream_index != target:
                self.packets_skipped += 1
                continue

            self.state = SourceState.DRAINING_PACKET
            yield from self._drain(packet)
            self.state = SourceState.AWAITING_PACKET

        # Flush frames still buffered inside the decoder.
        yield from self._flush()
        self.state = SourceState.FINISHED

    def _drain(self, packet: CompressedPacket) -> Iterator[Any]:
        data = memoryview(packet.data)
        failures = 0
        while len(data) > 0:
            try:
                result = self.decoder.decode(packet, bytes(data))
            except av.error.FFmpegError as e:
                self.decode_failures += 1
                failures += 1
                _log(f"Decode attempt {failures} failed on a packet of stream {packet.stream_index}: {e}")
                if failures >= self.max_decode_failures:
                    self._give_up(packet.stream_index, failures, e)
                    return
                continue

            consumed = max(0, min(result.consumed, len(data)))
            data = data[consumed:]
            if result.frame is not None:
                failures = 0
                self.frames_produced += 1
                yield result.frame
            elif consumed == 0:
                # Neither consumed nor produced anything.
                failures += 1
                if failures >= self.max_decode_failures:
                    self._give_up(packet.stream_index, failures, None)
                    return
            else:
                failures = 0

    def _flush(self) -> Iterator[Any]:
        failures = 0
        while True:
            try:
                result = self.decoder.decode(None, None)
            except av.error.FFmpegError as e:
                self.decode_failures += 1
                failures += 1
                _log(f"Flush attempt {failures} failed: {e}")
                if failures >= self.max_decode_failures:
                    self._give_up(self.decoder.stream_index, failures, e)
                    return
                continue
            if result.frame is None:
                return
            failures = 0
            self.frames_produced += 1
            yield result.frame

    def _give_up(self, stream_index: int, failures: int, error: Exception | None) -> None:
        if self.strict:
            raise DecodeStalledError(stream_index, failures) from error
        self.packets_dropped += 1
        _log(f"Dropping packet of stream {stream_index} after {failures} stalled decode attempts ({error})")

    def summary(self) -> str:
        return (
            f"packets read={self.packets_read} skipped={self.packets_skipped} "
            f"dropped={self.packets_dropped} frames={self.frames_produced} "
            f"decode failures={self.decode_failures}"
        )
