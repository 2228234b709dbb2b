"""
External tool validation utilities for glyphloop.

This module reports whether the external programs used around playback
are available on PATH.
"""

from __future__ import annotations

import shlex
from shutil import which

from ..utils.subprocess import DISABLED_COMMANDS


def check_tools(info_command: str) -> tuple[bool, list[str]]:
    """Check availability of the info command and the pty helpers.

    Args:
        info_command (str): Command line used for the overlay text.

    Returns:
        Tuple[bool, List[str]]: (all_ok, problems). If `all_ok` is False, problems lists the issues.
    """
    problems: list[str] = []
    if info_command.strip().lower() not in DISABLED_COMMANDS:
        try:
            parts = shlex.split(info_command)
        except ValueError as ex:
            parts = []
            problems.append(f"info command cannot be parsed: {ex}")
        if parts and which(parts[0]) is None:
            problems.append(f"{parts[0]} not found in PATH (overlay will be empty)")
    if which("script") is None and which("unbuffer") is None:
        problems.append("neither script nor unbuffer found in PATH (overlay colors may be lost)")
    return (len(problems) == 0, problems)
