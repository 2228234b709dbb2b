"""
Render one composed canvas as text lines with the info overlay beside it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from .glyphs import DEFAULT_RAMP, GlyphRamp, pixel_to_cell


@dataclass(frozen=True)
class FrameRenderer:
    """Stateless canvas-to-text renderer, safe to share between threads.

    Attributes:
        width (int): Art width in characters.
        height (int): Art height in characters.
        overlay (Sequence[str]): Info lines printed to the right of the art.
        multiplier (float): Glyph ramp sensitivity.
        color (bool): Emit 24-bit color escapes.
        offset (int): Art rows to skip before the first overlay line.
        separator (str): Gap between art and overlay text.
    """

    width: int
    height: int
    overlay: Sequence[str] = ()
    multiplier: float = 1.2
    color: bool = True
    offset: int = 0
    separator: str = "   "
    ramp: GlyphRamp = field(default=DEFAULT_RAMP, repr=False)

    @property
    def total_height(self) -> int:
        """Rows needed so every overlay line gets printed."""
        return max(self.height, len(self.overlay) + self.offset)

    def sample(self, canvas: np.ndarray) -> np.ndarray:
        """Nearest-neighbor resample of `canvas` to (height, width, 4)."""
        src_h, src_w = canvas.shape[:2]
        scale_x = src_w / self.width
        scale_y = src_h / self.height
        xs = (np.arange(self.width) * scale_x).astype(np.intp)
        ys = (np.arange(self.height) * scale_y).astype(np.intp)
        return canvas[ys[:, None], xs[None, :]]

    def render(self, canvas: np.ndarray) -> list[str]:
        """Return `total_height` lines: art rows, blank padding, overlay text."""
        cells = self.sample(canvas).tolist()
        blank = " " * self.width
        lines: list[str] = []

        for y in range(self.total_height):
            if y < self.height:
                parts = [
                    pixel_to_cell(r, g, b, a, self.multiplier, self.color, self.ramp)
                    for r, g, b, a in cells[y]
                ]
                line = "".join(parts)
            else:
                line = blank

            info_index = y - self.offset
            if 0 <= info_index < len(self.overlay):
                line += self.separator + self.overlay[info_index]
            lines.append(line)

        return lines

    __call__ = render
