"""Error types raised by the motion-vector pipeline."""

from __future__ import annotations


class MotionFlowError(Exception):
    """Base class for all mvflow errors."""


class SetupError(MotionFlowError):
    """The video could not be opened or prepared for decoding."""


class DecodeStalledError(MotionFlowError):
    """A single packet kept failing to decode."""

    def __init__(self, stream_index: int, failures: int) -> None:
        super().__init__(
            f"Decoding stalled on a packet of stream {stream_index} "
            f"after {failures} consecutive failures"
        )
        self.stream_index = stream_index
        self.failures = failures
