import random
import threading
import time

import numpy as np
import pytest

from glyphloop.core.types import (
    Animation,
    DisposalMethod,
    PipelineCancelled,
    PipelineInvariantError,
    RawFrame,
    Rect,
    RenderedAnimation,
    RenderResult,
)
from glyphloop.processing.compositor import FrameCompositor
from glyphloop.processing.pipeline import prerender
from glyphloop.render.frame import FrameRenderer


def moving_dot_animation(n: int, size: int = 8) -> Animation:
    """A dot walks across the canvas; every other frame clears itself."""
    frames = []
    for i in range(n):
        pixels = np.zeros((1, 1, 4), dtype=np.uint8)
        pixels[0, 0] = (i * 7 % 256, 255 - i % 256, (i * 31) % 256, 255)
        x, y = i % size, (i // size) % size
        disposal = DisposalMethod.RESTORE_BACKGROUND if i % 2 else DisposalMethod.NONE
        frames.append(RawFrame(bounds=Rect(x, y, x + 1, y + 1), pixels=pixels, disposal=disposal))
    return Animation(width=size, height=size, frames=frames)


def reference_render(animation: Animation, render) -> list[list[str]]:
    comp = FrameCompositor(animation.width, animation.height)
    return [render(canvas.copy()) for _, canvas in comp.compose(animation.frames)]


class JitteryRenderer:
    """Wraps a renderer with random sleeps so completion order gets shuffled."""

    def __init__(self, inner, seed: int = 1234):
        self.inner = inner
        self.rng = random.Random(seed)
        self.lock = threading.Lock()

    def __call__(self, canvas):
        with self.lock:
            delay = self.rng.uniform(0, 0.005)
        time.sleep(delay)
        return self.inner(canvas)


@pytest.mark.parametrize("workers,pool_size", [(1, 1), (2, 1), (4, 2), (8, 16)])
def test_parallel_result_matches_sequential_reference(workers, pool_size):
    animation = moving_dot_animation(40)
    renderer = FrameRenderer(width=8, height=4, overlay=("info",), color=True)
    expected = reference_render(animation, renderer)

    rendered = prerender(
        animation,
        JitteryRenderer(renderer),
        workers=workers,
        pool_size=pool_size,
        poll_interval=0.01,
    )
    assert len(rendered) == 40
    assert rendered.frames == expected


def test_single_frame_animation():
    animation = moving_dot_animation(1)
    renderer = FrameRenderer(width=4, height=4, color=False)
    rendered = prerender(animation, renderer, workers=3, pool_size=2, poll_interval=0.01)
    assert rendered.frames == reference_render(animation, renderer)
    assert rendered.first_frame == rendered.frames[0]


def test_workers_never_see_a_canvas_that_changes_under_them():
    animation = moving_dot_animation(20)
    seen = []
    lock = threading.Lock()

    def render(canvas):
        before = canvas.copy()
        time.sleep(0.002)
        with lock:
            seen.append(np.array_equal(before, canvas))
        return [str(int(canvas[..., 3].sum()))]

    prerender(animation, render, workers=4, pool_size=2, poll_interval=0.01)
    assert len(seen) == 20
    assert all(seen)


def test_render_error_propagates_without_deadlock():
    animation = moving_dot_animation(30)

    def render(canvas):
        if canvas[..., 3].sum() > 255 * 5:
            raise ValueError("boom")
        return ["ok"]

    done = []

    def run():
        with pytest.raises(ValueError, match="boom"):
            prerender(animation, render, workers=2, pool_size=1, poll_interval=0.01)
        done.append(True)

    t = threading.Thread(target=run)
    t.start()
    t.join(timeout=10)
    assert not t.is_alive()
    assert done == [True]


def test_stop_event_cancels_prerender():
    animation = moving_dot_animation(50)
    stop = threading.Event()

    def render(canvas):
        stop.set()
        time.sleep(0.01)
        return ["x"]

    with pytest.raises(PipelineCancelled):
        prerender(animation, render, workers=2, pool_size=1, stop_event=stop, poll_interval=0.01)


def test_from_results_orders_by_index():
    results = [RenderResult(index=i, lines=[str(i)]) for i in (2, 0, 1)]
    rendered = RenderedAnimation.from_results(results, 3)
    assert rendered.frames == [["0"], ["1"], ["2"]]


@pytest.mark.parametrize(
    "indices",
    [
        (0, 1, 3),  # out of range
        (0, 1, 1),  # duplicate
        (0, 2),  # missing
        (-1, 0, 1),
    ],
)
def test_from_results_rejects_bad_index_sets(indices):
    results = [RenderResult(index=i, lines=[]) for i in indices]
    with pytest.raises(PipelineInvariantError):
        RenderedAnimation.from_results(results, 3)
