"""mvflow — per-frame motion vector extraction from compressed video."""

from .codec import CompressedPacket, DecodeResult, PyAVDecoder
from .errors import DecodeStalledError, MotionFlowError, SetupError
from .extract import DecodedFrame, MotionVector, VectorExtractor
from .grid import GridAggregator, GridFrame, grid_shape
from .interpolate import InterpolationBuffer
from .output import OutputFormatter
from .pipeline import iter_grid_frames, iter_raw_frames, run, write_frames
from .reader import ParsedFrame, parse_frames
from .source import FrameSource

__all__ = [
    "CompressedPacket",
    "DecodeResult",
    "DecodeStalledError",
    "DecodedFrame",
    "FrameSource",
    "GridAggregator",
    "GridFrame",
    "InterpolationBuffer",
    "MotionFlowError",
    "MotionVector",
    "OutputFormatter",
    "ParsedFrame",
    "PyAVDecoder",
    "SetupError",
    "VectorExtractor",
    "grid_shape",
    "iter_grid_frames",
    "iter_raw_frames",
    "parse_frames",
    "run",
    "write_frames",
]
