"""
Bounded pool of reusable canvas buffers.

The pool is the only back-pressure point between the compositor and the
render workers: when every buffer is checked out, `acquire` blocks until a
worker releases one, so memory stays fixed however far compositing runs ahead.
"""

from __future__ import annotations

import queue
import threading

import numpy as np

from ..core.types import PipelineCancelled


class BufferPool:
    """Fixed set of preallocated RGBA canvases.

    Args:
        capacity (int): Number of canvases; must be at least 1.
        width (int): Canvas width in pixels.
        height (int): Canvas height in pixels.
        stop_event (Optional[threading.Event]): When set, blocked acquires raise
            `PipelineCancelled` instead of waiting forever.
        poll_interval (float): Seconds between stop-event checks while blocked.
    """

    def __init__(
        self,
        capacity: int,
        width: int,
        height: int,
        stop_event: threading.Event | None = None,
        poll_interval: float = 0.2,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"pool capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.shape = (height, width, 4)
        self._stop = stop_event or threading.Event()
        self._poll = poll_interval
        self._free: queue.Queue[np.ndarray] = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._checked_out = 0
        self.peak_checked_out = 0
        for _ in range(capacity):
            self._free.put_nowait(np.zeros(self.shape, dtype=np.uint8))

    @property
    def checked_out(self) -> int:
        with self._lock:
            return self._checked_out

    def acquire(self) -> np.ndarray:
        """Take a canvas, blocking while none is free.

        Raises:
            PipelineCancelled: If the stop event is set while waiting.
        """
        while True:
            if self._stop.is_set():
                raise PipelineCancelled("buffer acquisition cancelled")
            try:
                canvas = self._free.get(timeout=self._poll)
            except queue.Empty:
                continue
            with self._lock:
                self._checked_out += 1
                self.peak_checked_out = max(self.peak_checked_out, self._checked_out)
            return canvas

    def release(self, canvas: np.ndarray) -> None:
        """Return a canvas; the caller must drop every reference to it."""
        if canvas.shape != self.shape:
            raise ValueError(f"canvas shape {canvas.shape} does not belong to this pool {self.shape}")
        with self._lock:
            if self._checked_out == 0:
                raise RuntimeError("release without a matching acquire")
            self._checked_out -= 1
        self._free.put_nowait(canvas)

    def checkout_copy(self, source: np.ndarray) -> np.ndarray:
        """Acquire a canvas and fill it with `source`'s pixels."""
        canvas = self.acquire()
        np.copyto(canvas, source)
        return canvas
