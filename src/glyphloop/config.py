"""
Consolidated configuration system for glyphloop.

Defaults live in a pydantic-settings `AppConfig` so they can be overridden
through GLYPHLOOP_-prefixed environment variables; the validated settings for
a single run are a frozen `RenderConfig` built by the CLI.
"""

from __future__ import annotations

import os
from typing import Annotated

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

# =============================================================================
# RENDER DEFAULTS
# =============================================================================

class RenderDefaults(BaseModel):
    """Defaults for the glyph art and its overlay."""

    width: Annotated[int, Field(
        ge=1,
        description="Width of the animation in characters"
    )] = 40

    fps: Annotated[int, Field(
        ge=1,
        le=1000,
        description="Playback frames per second"
    )] = 17

    multiplier: Annotated[float, Field(
        gt=0.0,
        description="Luminance threshold multiplier; higher gives denser glyphs"
    )] = 1.2

    color: bool = True

    offset: Annotated[int, Field(
        ge=0,
        description="Blank lines above the overlay text"
    )] = 0

    separator: Annotated[str, Field(
        description="Gap between the art and each overlay line"
    )] = "   "


# =============================================================================
# OVERLAY SETTINGS
# =============================================================================

class OverlaySettings(BaseModel):
    """External system-info command used for the overlay text."""

    command: Annotated[str, Field(
        description="Command whose output is shown beside the art (omit its logo)"
    )] = "fastfetch --logo-type none"

    timeout_sec: Annotated[int, Field(
        gt=0,
        description="Seconds to wait for the info command"
    )] = 10


# =============================================================================
# WORKER SETTINGS
# =============================================================================

class WorkerSettings(BaseModel):
    """Worker thread and buffer pool configuration."""

    max_worker_cap: Annotated[int, Field(
        ge=1,
        le=32,
        description="Maximum number of render worker threads"
    )] = 32

    pool_factor: Annotated[int, Field(
        ge=1,
        description="Canvas buffers allocated per worker"
    )] = 2

    cancel_poll_interval: Annotated[float, Field(
        gt=0.0,
        le=1.0,
        description="Seconds between stop-event checks while blocked"
    )] = 0.2


# =============================================================================
# RUN CONFIGURATION
# =============================================================================

class RenderConfig(BaseModel):
    """Validated settings for one playback run."""

    width: Annotated[int, Field(ge=1)]
    height: Annotated[int, Field(ge=1)]
    fps: Annotated[int, Field(ge=1, le=1000)]
    multiplier: Annotated[float, Field(gt=0.0)]
    color: bool = True
    offset: Annotated[int, Field(ge=0)] = 0
    separator: str = "   "
    info_command: str = ""
    info_timeout_sec: Annotated[int, Field(gt=0)] = 10
    workers: Annotated[int, Field(ge=1, le=32)]
    pool_size: Annotated[int, Field(ge=1)]
    cancel_poll_interval: Annotated[float, Field(gt=0.0)] = 0.2

    class Config:
        frozen = True

    @property
    def delay_seconds(self) -> float:
        """Inter-frame delay, truncated to whole milliseconds."""
        return (1000 // self.fps) / 1000.0


# =============================================================================
# MAIN APPLICATION CONFIGURATION
# =============================================================================

class AppConfig(BaseSettings):
    """
    Main application configuration with environment variable support.

    All settings can be overridden via environment variables with GLYPHLOOP_ prefix.
    Example: GLYPHLOOP_RENDER__FPS=24
    """

    render: RenderDefaults = RenderDefaults()
    overlay: OverlaySettings = OverlaySettings()
    worker: WorkerSettings = WorkerSettings()

    class Config:
        env_prefix = "GLYPHLOOP_"
        env_nested_delimiter = "__"
        case_sensitive = False


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def create_config_from_env() -> AppConfig:
    """Create a new configuration instance from environment variables."""
    return AppConfig()


def resolve_height(width: int, height: int | None) -> int:
    """Default the height to the width, then halve it for tall terminal cells."""
    if height is None or height < 0:
        height = width
    return max(1, height // 2)


def pick_worker_count(requested: int | None, cap: int) -> int:
    """One worker per CPU unless asked otherwise, within the cap."""
    if requested is None:
        return max(1, min(os.cpu_count() or 1, cap))
    return max(1, min(requested, cap))
