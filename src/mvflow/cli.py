"""Command line entry point: mvflow [--raw] VIDEO_PATH."""

from __future__ import annotations

import click

from .errors import MotionFlowError
from .pipeline import run


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("video_path", type=click.Path(dir_okay=False))
@click.option(
    "--raw",
    is_flag=True,
    default=False,
    help="Print raw motion vectors instead of arranging them in a matrix.",
)
def main(video_path: str, raw: bool) -> None:
    """Extract per-frame motion vectors from VIDEO_PATH and print them to stdout."""
    try:
        run(video_path, raw=raw)
    except MotionFlowError as e:
        raise click.ClickException(str(e)) from e
