"""
Core data types for glyphloop.

This module holds the values that flow through the prerender pipeline:
decoded frames, render jobs and their results, and the final dense frame
table that playback reads from.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class DisposalMethod(Enum):
    """How a frame's region is treated before the next frame is drawn."""

    NONE = "none"
    RESTORE_BACKGROUND = "background"
    RESTORE_PREVIOUS = "previous"

    @classmethod
    def from_code(cls, code: int) -> DisposalMethod:
        """Map a GIF graphic-control disposal code (0-7) to a method.

        Only 1 (do not dispose) leaves the canvas alone and 3 restores the
        previous canvas. Every other code, 0 (unspecified) and the reserved
        4-7 included, clears the frame's rectangle like 2.
        """
        if code == 1:
            return cls.NONE
        if code == 3:
            return cls.RESTORE_PREVIOUS
        return cls.RESTORE_BACKGROUND


class PipelineInvariantError(RuntimeError):
    """A pipeline contract was broken; this is a bug, not bad input."""


class PipelineCancelled(Exception):
    """Raised from a blocking pipeline wait after the stop event was set."""


@dataclass(frozen=True)
class Rect:
    """Half-open rectangle [x0, x1) x [y0, y1) in canvas pixels."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return max(0, self.x1 - self.x0)

    @property
    def height(self) -> int:
        return max(0, self.y1 - self.y0)

    @property
    def empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def intersect(self, other: Rect) -> Rect:
        """Return the overlap of two rectangles (possibly empty)."""
        return Rect(
            max(self.x0, other.x0),
            max(self.y0, other.y0),
            min(self.x1, other.x1),
            min(self.y1, other.y1),
        )


@dataclass(frozen=True, eq=False)
class RawFrame:
    """A decoded sub-image placed at `bounds` on the logical screen.

    Attributes:
        bounds (Rect): Where the frame sits; may extend past the canvas.
        pixels (np.ndarray): uint8 RGBA array shaped (bounds.height, bounds.width, 4).
        disposal (DisposalMethod): Applied after this frame, before the next one.
        delay_ms (int): Display time recorded in the file.
    """

    bounds: Rect
    pixels: np.ndarray
    disposal: DisposalMethod = DisposalMethod.NONE
    delay_ms: int = 0


@dataclass
class Animation:
    """A decoded animation: logical screen size plus frames in file order."""

    width: int
    height: int
    frames: list[RawFrame]
    loop_count: int | None = None  # 0 means forever; None when the file says nothing

    def __len__(self) -> int:
        return len(self.frames)


@dataclass
class RenderJob:
    """One composed canvas to render; the canvas belongs to the buffer pool."""

    index: int
    canvas: np.ndarray


@dataclass(frozen=True)
class RenderResult:
    index: int
    lines: list[str]


@dataclass
class RenderedAnimation:
    """Dense, frame-ordered table of rendered text lines."""

    frames: list[list[str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def first_frame(self) -> list[str]:
        return self.frames[0] if self.frames else []

    @classmethod
    def from_results(cls, results: Iterable[RenderResult], frame_count: int) -> RenderedAnimation:
        """Place results by index, requiring exactly one result per frame.

        Raises:
            PipelineInvariantError: On an out-of-range, duplicate or missing index.
        """
        slots: list[list[str] | None] = [None] * frame_count
        for result in results:
            if not 0 <= result.index < frame_count:
                raise PipelineInvariantError(f"result index {result.index} outside [0, {frame_count})")
            if slots[result.index] is not None:
                raise PipelineInvariantError(f"duplicate result for frame {result.index}")
            slots[result.index] = result.lines

        missing = [i for i, lines in enumerate(slots) if lines is None]
        if missing:
            raise PipelineInvariantError(f"no result for frames {missing[:8]}")
        return cls(frames=[lines for lines in slots if lines is not None])
