"""
Prerender pipeline: compositor -> buffer pool -> render workers -> frame table.

One producer (the calling thread) composites frames in order and hands a
pooled copy of each canvas to the worker pool. Rendering runs in parallel;
the call returns only after every frame has been rendered and placed by
index.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from ..config import RenderConfig
from ..core.types import Animation, RenderedAnimation, RenderJob
from ..render.frame import FrameRenderer
from .compositor import FrameCompositor
from .pool import BufferPool
from .workers import RenderFn, RenderWorkerPool


def build_renderer(config: RenderConfig, overlay: Sequence[str]) -> FrameRenderer:
    """Create the frame renderer described by a run configuration."""
    return FrameRenderer(
        width=config.width,
        height=config.height,
        overlay=tuple(overlay),
        multiplier=config.multiplier,
        color=config.color,
        offset=config.offset,
        separator=config.separator,
    )


def prerender(
    animation: Animation,
    render: RenderFn,
    *,
    workers: int,
    pool_size: int,
    stop_event: threading.Event | None = None,
    poll_interval: float = 0.2,
) -> RenderedAnimation:
    """Composite and render every frame of `animation`.

    Args:
        animation (Animation): Decoded source frames.
        render (RenderFn): Canvas-to-lines function run on worker threads.
        workers (int): Number of render threads.
        pool_size (int): Canvas buffers shared between compositor and workers.
        stop_event (Optional[threading.Event]): Cancels blocked waits when set.
        poll_interval (float): Seconds between stop-event checks while blocked.

    Returns:
        RenderedAnimation: Lines for every frame, in source order.

    Raises:
        PipelineCancelled: If `stop_event` is set before rendering completes.
    """
    stop_event = stop_event or threading.Event()
    buffers = BufferPool(pool_size, animation.width, animation.height, stop_event, poll_interval)
    compositor = FrameCompositor(animation.width, animation.height)

    with RenderWorkerPool(workers, buffers, render, stop_event, poll_interval) as pool:
        for index, canvas in compositor.compose(animation.frames):
            if pool.failed:
                break
            pool.submit(RenderJob(index=index, canvas=buffers.checkout_copy(canvas)))
        return pool.finish(len(animation))


def prerender_with_config(
    animation: Animation,
    config: RenderConfig,
    overlay: Sequence[str],
    stop_event: threading.Event | None = None,
) -> RenderedAnimation:
    """`prerender` with renderer, worker count and pool size taken from `config`."""
    return prerender(
        animation,
        build_renderer(config, overlay),
        workers=config.workers,
        pool_size=config.pool_size,
        stop_event=stop_event,
        poll_interval=config.cancel_poll_interval,
    )
