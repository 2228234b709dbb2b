"""Subprocess and external command utilities."""

import os
import shlex
import subprocess
import sys
from shutil import which

DISABLED_COMMANDS = {"", "none", "off"}


def run_subprocess(cmd: list[str], *, timeout: int | None = None, env: dict[str, str] | None = None) -> tuple[int, str]:
    """Run subprocess command with proper error handling.

    Args:
        cmd: Command and arguments list
        timeout: Optional timeout in seconds
        env: Optional environment for the child

    Returns:
        Tuple of (return_code, combined stdout/stderr output)
    """
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
            env=env,
        )
        return result.returncode, result.stdout.decode("utf-8", errors="replace")
    except subprocess.TimeoutExpired:
        return -1, f"Command timed out after {timeout} seconds"
    except OSError as e:
        return -1, str(e)


def build_info_command(command_line: str) -> list[str]:
    """Wrap the info command so it believes it writes to a terminal.

    Tools like fastfetch drop their colors when piped; `script` (or
    `unbuffer`) gives them a pseudo-terminal. Falls back to running the
    command directly.
    """
    parts = shlex.split(command_line)
    if which("script"):
        if sys.platform == "darwin":
            return ["script", "-q", "/dev/null", *parts]
        return ["script", "-qefc", f"{command_line} 2>/dev/null", "/dev/null"]
    if which("unbuffer"):
        return ["unbuffer", *parts]
    return parts


def get_command_output_lines(command_line: str, timeout: int | None = 10) -> list[str]:
    """Run the info command and return its non-empty output lines.

    Returns an empty list when the command is disabled, missing, times out
    or exits non-zero; the overlay is optional.
    """
    if command_line.strip().lower() in DISABLED_COMMANDS:
        return []
    try:
        cmd = build_info_command(command_line)
    except ValueError:
        return []  # unbalanced quotes
    if not cmd:
        return []

    env = {**os.environ, "TERM": "xterm-256color"}
    code, output = run_subprocess(cmd, timeout=timeout, env=env)
    if code != 0:
        return []

    lines = [line.rstrip("\r\n") for line in output.split("\n")]
    return [line for line in lines if line.strip()]
