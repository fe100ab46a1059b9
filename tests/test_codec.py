from collections import deque

import pytest

from mvflow.codec import CompressedPacket, PyAVDecoder
from mvflow.errors import SetupError


class ScriptedCodecContext:
    """Returns one scripted frame list per decode() call and records what it was sent."""

    def __init__(self, *outputs):
        self._outputs = deque(outputs)
        self.sent = []

    def decode(self, packet):
        self.sent.append(packet)
        return list(self._outputs.popleft()) if self._outputs else []


def decoder_with(codec_context):
    decoder = PyAVDecoder.__new__(PyAVDecoder)
    decoder._pending = deque()
    decoder._flushed = False
    decoder._codec_context = codec_context
    return decoder


def compressed(size):
    return CompressedPacket(stream_index=0, data=bytes(size), handle=f"packet-{size}")


def test_extra_frames_are_queued_and_served_before_next_packet():
    ctx = ScriptedCodecContext(["f1", "f2", "f3"], ["f4"])
    decoder = decoder_with(ctx)
    first, second = compressed(10), compressed(6)

    result = decoder.decode(first, first.data)
    assert (result.consumed, result.frame) == (10, "f1")

    served = [decoder.decode(second, second.data) for _ in range(3)]
    assert [(r.consumed, r.frame) for r in served] == [(0, "f2"), (0, "f3"), (6, "f4")]
    assert ctx.sent == ["packet-10", "packet-6"]


def test_packet_without_output_consumes_everything():
    decoder = decoder_with(ScriptedCodecContext([]))
    packet = compressed(7)

    result = decoder.decode(packet, packet.data)

    assert (result.consumed, result.frame) == (7, None)


def test_flush_drains_queue_then_decoder_once():
    ctx = ScriptedCodecContext(["f1", "f2"], ["f3", "f4"])
    decoder = decoder_with(ctx)
    packet = compressed(5)
    decoder.decode(packet, packet.data)

    frames = [decoder.decode(None, None).frame for _ in range(5)]

    assert frames == ["f2", "f3", "f4", None, None]
    assert ctx.sent == ["packet-5", None]


def test_missing_file_is_a_setup_error(tmp_path):
    with pytest.raises(SetupError):
        PyAVDecoder(tmp_path / "missing.mp4")
