"""VectorExtractor — motion vectors, timestamp and picture type of a decoded frame."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

# Same characters as FFmpeg's av_get_picture_type_char().
PICTURE_TYPE_CHARS = {
    "I": "I",
    "P": "P",
    "B": "B",
    "S": "S",
    "SI": "i",
    "SP": "p",
    "BI": "b",
}

MOTION_VECTORS_SIDE_DATA = "MOTION_VECTORS"


class MotionVector(NamedTuple):
    """A block's source position and its displacement (source minus destination)."""

    src_x: int
    src_y: int
    dx: int
    dy: int


@dataclass
class DecodedFrame:
    pts: int
    pict_type: str
    vectors: list[MotionVector] = field(default_factory=list)
    index: int = 0


def picture_type_char(pict_type: Any) -> str:
    """Map a decoder picture type (enum member or name) to its display character."""
    if pict_type is None:
        return "?"
    if type(pict_type) is int:
        # AVPictureType values, AV_PICTURE_TYPE_NONE first.
        return "?IPBSipb"[pict_type] if 0 <= pict_type < 8 else "?"
    name = getattr(pict_type, "name", None) or str(pict_type)
    return PICTURE_TYPE_CHARS.get(name.upper(), "?")


def motion_vectors(frame: Any) -> list[MotionVector]:
    """Read the motion-vector side data of ``frame``; no side data means no vectors."""
    side_data = getattr(frame, "side_data", None)
    if side_data is None:
        return []
    records = side_data.get(MOTION_VECTORS_SIDE_DATA)
    if records is None:
        return []
    return [
        MotionVector(
            int(mv.src_x),
            int(mv.src_y),
            int(mv.src_x) - int(mv.dst_x),
            int(mv.src_y) - int(mv.dst_y),
        )
        for mv in records
    ]


class TimestampResolver:
    """Resolves a frame timestamp: pts, then dts, then previous + 1.

    The last fallback only keeps timestamps increasing; after a run of frames
    without any valid timestamp it no longer matches presentation order.
    """

    def __init__(self, seed: int = -1) -> None:
        self._seed = seed
        self.last = seed

    def reset(self) -> None:
        self.last = self._seed

    def resolve(self, pts: int | None, dts: int | None) -> int:
        if pts is not None:
            self.last = pts
        elif dts is not None:
            self.last = dts
        else:
            self.last += 1
        return self.last


class VectorExtractor:
    """Turns decoder frames into DecodedFrame records, numbering them from 1."""

    def __init__(self) -> None:
        self.timestamps = TimestampResolver()
        self.frame_count = 0

    def reset(self) -> None:
        self.timestamps.reset()
        self.frame_count = 0

    def extract(self, frame: Any) -> DecodedFrame:
        self.frame_count += 1
        pts = self.timestamps.resolve(getattr(frame, "pts", None), getattr(frame, "dts", None))
        return DecodedFrame(
            pts=pts,
            pict_type=picture_type_char(getattr(frame, "pict_type", None)),
            vectors=motion_vectors(frame),
            index=self.frame_count,
        )
