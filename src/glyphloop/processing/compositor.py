"""
Frame compositing for glyphloop.

GIF frames are deltas: each one paints a sub-rectangle over whatever the
previous frame left behind, after that previous frame's disposal method has
been applied. `FrameCompositor` replays this in file order and exposes the
full visible canvas after every frame.

The compositor is strictly sequential and owns its canvases; callers must
copy a yielded canvas before advancing to the next frame.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import numpy as np

from ..core.types import DisposalMethod, RawFrame, Rect


def new_canvas(width: int, height: int) -> np.ndarray:
    """Return a fully transparent RGBA canvas."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def alpha_over(dst: np.ndarray, src: np.ndarray) -> None:
    """Blend straight-alpha `src` over `dst` in place; shapes must match."""
    alpha = src[..., 3]
    opaque = alpha == 255
    if np.all(opaque | (alpha == 0)):
        # GIF pixels are either fully opaque or fully transparent
        dst[opaque] = src[opaque]
        return

    src_a = src[..., 3:4].astype(np.float32) / 255.0
    dst_a = dst[..., 3:4].astype(np.float32) / 255.0

    out_a = src_a + dst_a * (1.0 - src_a)
    rgb = src[..., :3].astype(np.float32) * src_a + dst[..., :3].astype(np.float32) * dst_a * (1.0 - src_a)
    safe_a = np.where(out_a > 0.0, out_a, 1.0)
    rgb = np.where(out_a > 0.0, rgb / safe_a, 0.0)

    dst[..., :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    dst[..., 3:4] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)


class FrameCompositor:
    """Rebuilds the visible canvas frame by frame, honoring disposal methods.

    Args:
        width (int): Logical screen width in pixels.
        height (int): Logical screen height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.bounds = Rect(0, 0, width, height)
        self._canvas: np.ndarray | None = None
        self._snapshot: np.ndarray | None = None
        self._last_disposal = DisposalMethod.NONE
        self._last_bounds = Rect(0, 0, 0, 0)

    @property
    def canvas(self) -> np.ndarray:
        """The current composed canvas (owned by the compositor)."""
        if self._canvas is None:
            raise RuntimeError("no frame has been composited yet")
        return self._canvas

    def _dispose_previous(self) -> None:
        canvas = self.canvas
        if self._last_disposal is DisposalMethod.RESTORE_PREVIOUS:
            np.copyto(canvas, self._snapshot)
        elif self._last_disposal is not DisposalMethod.NONE:
            r = self._last_bounds.intersect(self.bounds)
            if not r.empty:
                canvas[r.y0 : r.y1, r.x0 : r.x1] = 0

    def _draw(self, frame: RawFrame) -> None:
        clip = frame.bounds.intersect(self.bounds)
        if clip.empty:
            return
        # offsets of the visible part inside the frame's own pixel array
        fx0 = clip.x0 - frame.bounds.x0
        fy0 = clip.y0 - frame.bounds.y0
        src = frame.pixels[fy0 : fy0 + clip.height, fx0 : fx0 + clip.width]
        alpha_over(self.canvas[clip.y0 : clip.y1, clip.x0 : clip.x1], src)

    def add(self, frame: RawFrame) -> np.ndarray:
        """Composite the next frame and return the updated canvas.

        The returned array is the compositor's own canvas; it changes on the
        next call.
        """
        if self._canvas is None:
            self._canvas = new_canvas(self.width, self.height)
            self._snapshot = new_canvas(self.width, self.height)
        else:
            self._dispose_previous()

        if frame.disposal is DisposalMethod.RESTORE_PREVIOUS:
            np.copyto(self._snapshot, self._canvas)

        self._draw(frame)
        self._last_disposal = frame.disposal
        self._last_bounds = frame.bounds
        return self._canvas

    def compose(self, frames: Iterable[RawFrame]) -> Iterator[tuple[int, np.ndarray]]:
        """Yield (index, canvas) after compositing each frame in order."""
        for index, frame in enumerate(frames):
            yield index, self.add(frame)
