"""
Playback of a prerendered animation.
"""

from __future__ import annotations

import sys
import threading
from typing import TextIO

from ..core.constants import ANSI_CURSOR_HOME
from ..core.types import RenderedAnimation


class PlaybackLoop:
    """Replays rendered frames at a fixed delay until the stop event is set.

    Args:
        animation (RenderedAnimation): Frames to show, in order.
        delay (float): Seconds each frame stays on screen.
        stream (Optional[TextIO]): Output stream; defaults to sys.stdout.
        stop_event (Optional[threading.Event]): Checked at every frame boundary.
    """

    def __init__(
        self,
        animation: RenderedAnimation,
        delay: float,
        stream: TextIO | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.animation = animation
        self.delay = delay
        self.stream = stream or sys.stdout
        self.stop_event = stop_event or threading.Event()
        self.frames_shown = 0

    def show(self, lines: list[str]) -> None:
        """Write one frame from the top-left corner and flush it."""
        self.stream.write(ANSI_CURSOR_HOME)
        for line in lines:
            self.stream.write(line)
            self.stream.write("\n")
        self.stream.flush()
        self.frames_shown += 1

    def run(self, cycles: int | None = None) -> int:
        """Play the animation `cycles` times, or until stopped when None.

        Returns:
            int: Number of frames shown.
        """
        completed = 0
        while cycles is None or completed < cycles:
            for lines in self.animation.frames:
                if self.stop_event.is_set():
                    return self.frames_shown
                self.show(lines)
                # wait() doubles as the frame delay and an early wake-up on stop
                if self.stop_event.wait(self.delay):
                    return self.frames_shown
            completed += 1
        return self.frames_shown
