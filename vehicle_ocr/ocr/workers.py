"""Cancellation, progress reporting and worker slots for recognition calls."""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from vehicle_ocr.exceptions import RecognitionCancelledError
from vehicle_ocr.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]

_ACQUIRE_POLL_S = 0.05


class CancellationToken:
    """Flag a caller sets to abandon an extraction in flight.

    The token is checked at every stage boundary; once cancelled, any
    result produced afterwards is discarded.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`RecognitionCancelledError` if :meth:`cancel` was called."""
        if self._event.is_set():
            raise RecognitionCancelledError("Recognition was cancelled by the caller")


class ProgressReporter:
    """Forwards progress to a callback as non-decreasing integers in 0-100.

    Values below the last reported one, and repeats of it, are dropped.

    Args:
        callback: Receiver of progress percentages, or ``None`` to discard.
    """

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: float) -> None:
        value = min(100, max(0, int(round(percent))))
        if value <= self._last:
            return
        self._last = value
        if self._callback is not None:
            self._callback(value)


class RecognitionWorkerPool:
    """Bounded set of recognition worker slots.

    A slot is held for the duration of one recognition call and released
    on every exit path.

    Args:
        max_workers: Number of recognitions allowed to run at once.
    """

    def __init__(self, max_workers: int = 1) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self._slots = threading.BoundedSemaphore(max_workers)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @contextmanager
    def acquire(self, cancel_token: CancellationToken | None = None) -> Iterator[None]:
        """Hold one worker slot for the enclosed block.

        Waiting for a slot polls the cancellation token, so a cancelled
        caller never blocks indefinitely behind a busy worker.

        Raises:
            RecognitionCancelledError: If the token is cancelled while waiting.
        """
        while not self._slots.acquire(timeout=_ACQUIRE_POLL_S):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
        with self._lock:
            self._in_use += 1
        logger.debug("Acquired recognition worker (%d/%d)", self.in_use, self.max_workers)
        try:
            yield
        finally:
            with self._lock:
                self._in_use -= 1
            self._slots.release()
            logger.debug("Released recognition worker")
