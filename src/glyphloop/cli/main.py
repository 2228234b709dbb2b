#!/usr/bin/env python3
"""
glyphloop: Play an animated GIF in the terminal as glyph art beside system info.

The run is split into two phases:
- Prerender: composite every GIF frame in order and render the text for
  each one on a pool of worker threads
- Playback: loop over the prerendered frames at a fixed rate until SIGINT
  or SIGTERM, then restore the terminal and leave the first frame on screen
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
import time
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from ..config import AppConfig, RenderConfig, create_config_from_env, pick_worker_count, resolve_height
from ..core.types import Animation, PipelineCancelled
from ..decoding.gif import GifDecodeError, decode_gif
from ..output.logger import SimpleLogger
from ..playback.loop import PlaybackLoop
from ..playback.terminal import TerminalSession
from ..processing.pipeline import prerender_with_config
from ..tools.check import check_tools
from ..utils.subprocess import get_command_output_lines

EXIT_INTERRUPTED = 130


def parse_args(argv: Sequence[str] | None = None, app_config: AppConfig | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    app = app_config or create_config_from_env()
    p = argparse.ArgumentParser(
        prog="glyphloop",
        description="Play an animated GIF in the terminal as glyph art next to system info.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("gif", type=Path, nargs="?", help="Path to an animated GIF")
    p.add_argument("--width", type=int, default=app.render.width, help="Width of the animation in characters")
    p.add_argument(
        "--height",
        type=int,
        default=-1,
        help="Height in characters before halving for cell aspect ratio; -1 uses the width",
    )
    p.add_argument("--fps", type=int, default=app.render.fps, help="Playback frames per second")
    p.add_argument(
        "--multiplier",
        type=float,
        default=app.render.multiplier,
        help="Glyph density multiplier; lower values can show light pixels as blanks",
    )
    p.add_argument(
        "--color",
        action=argparse.BooleanOptionalAction,
        default=app.render.color,
        help="24-bit ANSI color; --no-color gives monochrome glyphs",
    )
    p.add_argument(
        "--info",
        default=app.overlay.command,
        help="Command whose output is printed beside the art (omit its logo); 'none' disables it",
    )
    p.add_argument("--offset", type=int, default=app.render.offset, help="Empty lines before the info text")
    p.add_argument("-w", "--workers", type=int, help=f"Render threads (default: CPU count, capped at {app.worker.max_worker_cap})")
    p.add_argument("--pool-size", type=int, help=f"Canvas buffers (default: {app.worker.pool_factor} per worker)")
    p.add_argument("--log-file", type=Path, help="Append log messages to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Print run details to stderr before playback")
    p.add_argument("--check-tools", action="store_true", help="Verify external tools and exit")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace, app_config: AppConfig | None = None) -> RenderConfig:
    """Create a RenderConfig from parsed args.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    app = app_config or create_config_from_env()
    workers = pick_worker_count(args.workers, app.worker.max_worker_cap)
    pool_size = args.pool_size if args.pool_size is not None else workers * app.worker.pool_factor
    return RenderConfig(
        width=args.width,
        height=resolve_height(args.width, args.height),
        fps=args.fps,
        multiplier=args.multiplier,
        color=args.color,
        offset=args.offset,
        separator=app.render.separator,
        info_command=args.info,
        info_timeout_sec=app.overlay.timeout_sec,
        workers=workers,
        pool_size=pool_size,
        cancel_poll_interval=app.worker.cancel_poll_interval,
    )


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Stop gracefully on SIGINT/SIGTERM by setting an event the loops poll."""

    def handler(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def print_run_header(logger: SimpleLogger, config: RenderConfig, gif_path: Path, animation: Animation) -> None:
    """Print the run configuration."""
    delays = [f.delay_ms for f in animation.frames if f.delay_ms > 0]
    source_delay = f"{sum(delays) / len(delays):.0f} ms" if delays else "unset"
    rows = [
        ["Source:", str(gif_path.resolve())],
        ["Canvas:", f"{animation.width}x{animation.height} px, {len(animation)} frames"],
        ["Source delay:", source_delay],
        ["Loop count:", "forever" if animation.loop_count == 0 else str(animation.loop_count or "unset")],
        ["Art size:", f"{config.width}x{config.height} chars"],
        ["Playback:", f"{config.fps} fps ({config.delay_seconds * 1000:.0f} ms/frame)"],
        ["Color:", "24-bit" if config.color else "monochrome"],
        ["Workers:", f"{config.workers} (pool {config.pool_size})"],
    ]
    logger.table(["Setting", "Value"], rows, title="Run Configuration")


def load_animation(gif_path: Path, logger: SimpleLogger) -> Animation | None:
    """Decode the input; log and return None on failure."""
    try:
        return decode_gif(gif_path)
    except FileNotFoundError:
        logger.error(f"File not found: {gif_path}")
        return None
    except GifDecodeError as ex:
        logger.error(f"Cannot decode {gif_path}: {ex}")
        return None
    except OSError as ex:
        logger.error(f"Cannot read {gif_path}: {ex}")
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    app = create_config_from_env()
    args = parse_args(argv, app)
    logger = SimpleLogger(args.log_file, verbose=args.verbose)

    if args.check_tools:
        ok, probs = check_tools(args.info)
        if ok:
            logger.console.print("[bold green]Tools OK[/]")
            return 0
        for p in probs:
            logger.console.print(f"[bold red]Missing:[/] {p}")
        return 1

    if args.gif is None:
        logger.error("Usage: glyphloop [options] /path/to/file.gif")
        return 2

    try:
        config = build_config(args, app)
    except ValidationError as ex:
        for err in ex.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            logger.error(f"Invalid --{field.replace('_', '-')}: {err['msg']}")
        return 2

    animation = load_animation(args.gif, logger)
    if animation is None:
        return 1

    print_run_header(logger, config, args.gif, animation)

    overlay = get_command_output_lines(config.info_command, timeout=config.info_timeout_sec)
    if not overlay:
        logger.info("Info command produced no output; showing the art alone")

    stop_ev = threading.Event()
    install_signal_handlers(stop_ev)

    with TerminalSession() as session:
        t0 = time.time()
        try:
            rendered = prerender_with_config(animation, config, overlay, stop_ev)
        except PipelineCancelled:
            session.restore()
            logger.warning("Interrupted during prerender.")
            return EXIT_INTERRUPTED

        session.final_frame = rendered.first_frame
        prerender_sec = time.time() - t0
        shown = PlaybackLoop(rendered, config.delay_seconds, stream=session.stream, stop_event=stop_ev).run()

    logger.success(f"Prerendered {len(rendered)} frames in {prerender_sec:.2f}s, showed {shown} frames")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
