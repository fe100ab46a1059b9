import io

import av
import numpy as np
import pytest
from click.testing import CliRunner

from mvflow.cli import main
from mvflow.reader import parse_frames


def encode_drift(path, n_frames, max_b_frames=0, width=64, height=48):
    """Write a short MPEG-4 clip of a square drifting to the right."""
    container = av.open(str(path), mode="w")
    stream = container.add_stream("mpeg4", rate=25)
    stream.width = width
    stream.height = height
    stream.pix_fmt = "yuv420p"
    stream.codec_context.max_b_frames = max_b_frames

    for i in range(n_frames):
        img = np.zeros((height, width, 3), dtype=np.uint8)
        img[12:36, 4 + 2 * i:28 + 2 * i] = (200, 120, 40)
        frame = av.VideoFrame.from_ndarray(img, format="rgb24")
        for packet in stream.encode(frame):
            container.mux(packet)
    for packet in stream.encode():
        container.mux(packet)
    container.close()


@pytest.fixture(scope="module")
def sample_video(tmp_path_factory):
    path = tmp_path_factory.mktemp("video") / "drift.mp4"
    encode_drift(path, 10)
    return path, 10


@pytest.fixture(scope="module")
def b_frame_video(tmp_path_factory):
    path = tmp_path_factory.mktemp("video") / "drift_b.mp4"
    encode_drift(path, 12, max_b_frames=2)
    return path, 12


def test_missing_video_path_prints_usage():
    result = CliRunner().invoke(main, [])

    assert result.exit_code != 0
    assert "Usage:" in result.stderr
    assert result.stdout == ""


def test_unopenable_video_is_fatal(tmp_path):
    result = CliRunner().invoke(main, [str(tmp_path / "missing.mp4")])

    assert result.exit_code == 1
    assert "Error:" in result.stderr
    assert result.stdout == ""


def test_grid_output(sample_video):
    path, n_frames = sample_video
    result = CliRunner().invoke(main, [str(path)])

    assert result.exit_code == 0, result.stderr
    frames = list(parse_frames(io.StringIO(result.stdout)))
    assert sorted(f.index for f in frames) == list(range(1, n_frames + 1))
    assert all(f.output_type == "arranged" for f in frames)
    assert all(f.data.shape == (2, 3, 4) for f in frames)
    assert frames[0].pict_type == "I"


def test_raw_output(sample_video):
    path, n_frames = sample_video
    result = CliRunner().invoke(main, ["--raw", str(path)])

    assert result.exit_code == 0, result.stderr
    frames = list(parse_frames(io.StringIO(result.stdout)))
    assert [f.index for f in frames] == list(range(1, n_frames + 1))
    assert all(f.output_type == "raw" and f.data.shape[1] == 4 for f in frames)
    pts = [f.pts for f in frames]
    assert len(set(pts)) == n_frames


def test_b_frames_are_all_decoded(b_frame_video):
    path, n_frames = b_frame_video
    result = CliRunner().invoke(main, ["--raw", str(path)])

    assert result.exit_code == 0, result.stderr
    frames = list(parse_frames(io.StringIO(result.stdout)))
    assert [f.index for f in frames] == list(range(1, n_frames + 1))
    assert "B" in {f.pict_type for f in frames}
    assert f"frames={n_frames}" in result.stderr


def test_b_frame_grid_output_keeps_every_frame_once(b_frame_video):
    path, n_frames = b_frame_video
    result = CliRunner().invoke(main, [str(path)])

    assert result.exit_code == 0, result.stderr
    frames = list(parse_frames(io.StringIO(result.stdout)))
    assert sorted(f.index for f in frames) == list(range(1, n_frames + 1))
