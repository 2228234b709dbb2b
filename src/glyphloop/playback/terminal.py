"""
Terminal state handling around playback.

`TerminalSession` switches to the alternate screen and hides the cursor on
entry. On exit it restores the main screen, prints a static frame so the
art stays visible after the program ends, and puts the cursor and colors
back.
"""

from __future__ import annotations

import sys
from typing import TextIO

from ..core.constants import (
    ANSI_ENTER_ALT_SCREEN,
    ANSI_EXIT_ALT_SCREEN,
    ANSI_HIDE_CURSOR,
    ANSI_RESET,
    ANSI_SHOW_CURSOR,
)


class TerminalSession:
    """Context manager for alternate-screen playback.

    Args:
        stream (Optional[TextIO]): Terminal stream; defaults to sys.stdout.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout
        self.final_frame: list[str] = []
        self.active = False

    def __enter__(self) -> TerminalSession:
        self.stream.write(ANSI_ENTER_ALT_SCREEN)
        self.stream.write(ANSI_HIDE_CURSOR)
        self.stream.flush()
        self.active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def restore(self) -> None:
        """Leave the alternate screen and print `final_frame`; safe to call twice."""
        if not self.active:
            return
        self.active = False
        self.stream.write(ANSI_EXIT_ALT_SCREEN)
        for line in self.final_frame:
            self.stream.write(line)
            self.stream.write("\n")
        self.stream.write(ANSI_SHOW_CURSOR)
        self.stream.write(ANSI_RESET)
        self.stream.flush()
