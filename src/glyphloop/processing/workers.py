"""
Render worker pool.

A fixed number of threads drain a shared job queue. Each job carries a frame
index and a pooled canvas; the worker renders it, records the result under
that index and hands the canvas back to the buffer pool. Completion order is
arbitrary; `finish` reassembles results into frame order.
"""

from __future__ import annotations

import concurrent.futures as futures
import queue
import threading
from collections.abc import Callable

import numpy as np

from ..core.types import PipelineCancelled, RenderedAnimation, RenderJob, RenderResult
from .pool import BufferPool

RenderFn = Callable[[np.ndarray], list[str]]

_CLOSED = None  # one per worker, queued by close()


class RenderWorkerPool:
    """Fan-out/fan-in over a job queue using a thread pool.

    Args:
        workers (int): Number of worker threads.
        buffers (BufferPool): Pool that job canvases are released back to.
        render (RenderFn): Canvas-to-lines function; must not keep the canvas.
        stop_event (Optional[threading.Event]): Shared cancellation flag.
        poll_interval (float): Seconds between stop-event checks while idle.
    """

    def __init__(
        self,
        workers: int,
        buffers: BufferPool,
        render: RenderFn,
        stop_event: threading.Event | None = None,
        poll_interval: float = 0.2,
    ) -> None:
        if workers < 1:
            raise ValueError(f"need at least one worker, got {workers}")
        self.workers = workers
        self.buffers = buffers
        self.render = render
        self._stop = stop_event or threading.Event()
        self._abort = threading.Event()
        self._lock = threading.Lock()
        self._errors: list[Exception] = []
        self._poll = poll_interval
        self._jobs: queue.Queue[RenderJob | None] = queue.Queue()
        self._results: queue.Queue[RenderResult] = queue.Queue()
        self._executor: futures.ThreadPoolExecutor | None = None
        self._futures: list[futures.Future] = []
        self._closed = False

    def __enter__(self) -> RenderWorkerPool:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            # Skip rendering whatever is still queued
            self._abort.set()
        self.close()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    @property
    def failed(self) -> bool:
        """True once a render call has raised."""
        return self._abort.is_set() and bool(self._errors)

    def start(self) -> None:
        if self._executor is not None:
            return
        self._executor = futures.ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="render")
        self._futures = [self._executor.submit(self._work, w) for w in range(self.workers)]

    def submit(self, job: RenderJob) -> None:
        """Queue a job; ownership of `job.canvas` passes to the pool."""
        if self._closed:
            raise RuntimeError("submit after close")
        self._jobs.put(job)

    def close(self) -> None:
        """Signal that no more jobs will arrive."""
        if self._closed:
            return
        self._closed = True
        for _ in range(self.workers):
            self._jobs.put(_CLOSED)

    def _next_job(self) -> RenderJob | None:
        while True:
            if self._stop.is_set():
                raise PipelineCancelled("render worker cancelled")
            try:
                return self._jobs.get(timeout=self._poll)
            except queue.Empty:
                continue

    def _work(self, worker_id: int) -> int:
        done = 0
        while True:
            job = self._next_job()
            if job is _CLOSED:
                return done
            try:
                # After a failure, keep draining so queued canvases return to the pool
                if not self._abort.is_set():
                    lines = self.render(job.canvas)
                    self._results.put(RenderResult(index=job.index, lines=lines))
                    done += 1
            except Exception as ex:
                with self._lock:
                    self._errors.append(ex)
                self._abort.set()
            finally:
                self.buffers.release(job.canvas)

    def finish(self, frame_count: int) -> RenderedAnimation:
        """Close the queue, wait for every worker, and order the results.

        Raises:
            PipelineCancelled: If the stop event was set during rendering.
            PipelineInvariantError: If results do not cover each frame exactly once.
            Exception: The first exception raised by a render call.
        """
        self.close()
        cancelled: list[BaseException] = []
        for fut in futures.as_completed(self._futures):
            ex = fut.exception()
            if ex is not None:
                cancelled.append(ex)

        if self._errors:
            raise self._errors[0]
        if cancelled:
            raise cancelled[0]

        results: list[RenderResult] = []
        while True:
            try:
                results.append(self._results.get_nowait())
            except queue.Empty:
                break
        return RenderedAnimation.from_results(results, frame_count)
