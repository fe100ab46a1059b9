"""InterpolationBuffer — fills single vector-less frames from their neighbours."""

from __future__ import annotations

from .grid import GridFrame


class InterpolationBuffer:
    """Holds the last two frames to fill isolated gap frames.

    Frames are pushed in decode order. Non-empty frames are released at once
    and stay in the window only as the left neighbour of a possible gap; empty
    frames are held until a non-empty frame arrives or they drop out of the
    window. When the window is ``[non-empty, empty]`` and a non-empty frame
    arrives, the empty one gets the floor of the per-cell mean of its two
    neighbours before it is released. Every frame is released exactly once.
    """

    WINDOW = 2

    def __init__(self) -> None:
        self._window: list[GridFrame] = []

    def __len__(self) -> int:
        return len(self._window)

    @property
    def pending(self) -> list[GridFrame]:
        return list(self._window)

    def reset(self) -> None:
        self._window.clear()

    def push(self, cur: GridFrame) -> list[GridFrame]:
        """Accept the next frame and return the frames ready to be written, in order."""
        if cur.empty:
            self._window.append(cur)
            if len(self._window) > self.WINDOW:
                oldest = self._window.pop(0)
                if oldest.empty:
                    return [oldest]
            return []

        if len(self._window) == 2 and not self._window[0].empty:
            prev, gap = self._window
            interpolate(gap, prev, cur)
        released = [f for f in self._window if f.empty]
        released.append(cur)
        self._window = [cur]
        return released

    def flush(self) -> list[GridFrame]:
        """Release the held frames; a trailing gap stays as it is."""
        released = [f for f in self._window if f.empty]
        self._window = []
        return released


def interpolate(gap: GridFrame, prev: GridFrame, nxt: GridFrame) -> None:
    """Overwrite ``gap``'s matrices with floor((prev + nxt) / 2), cell by cell."""
    gap.dx[...] = (prev.dx.astype(int) + nxt.dx) // 2
    gap.dy[...] = (prev.dy.astype(int) + nxt.dy) // 2
    gap.interpolated = True
