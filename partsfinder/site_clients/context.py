"""Cancellable fetch context.

A ``FetchContext`` is handed to every ``fetch_parts`` call. Adapters call
``check()`` before and after each network request and bound each request's
timeout with ``timeout()``, so cancelling a context stops a fetch within one
in-flight request.
"""

import threading
import time
from typing import Callable, Optional

from .base import FetchCancelled


class FetchContext:
    """Cancellation flag plus an optional deadline.

    Thread-safe: ``cancel()`` may be called from any thread while a fetch
    runs in another one.

    Example:
        ctx = FetchContext(timeout_seconds=120)
        parts = adapter.fetch_parts(ctx, SearchParams(limit=50))
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the context.

        Args:
            timeout_seconds: Overall deadline relative to now (None = no deadline)
            clock: Monotonic clock, injectable for tests
        """
        self._cancelled = threading.Event()
        self._clock = clock
        self._deadline = clock() + timeout_seconds if timeout_seconds is not None else None

    def cancel(self) -> None:
        """Request cancellation of every fetch using this context."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.remaining() == 0

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def check(self) -> None:
        """Raise FetchCancelled if the context is cancelled or past its deadline."""
        if self._cancelled.is_set():
            raise FetchCancelled("fetch cancelled")
        if self.remaining() == 0:
            raise FetchCancelled("fetch deadline exceeded")

    def timeout(self, default: float) -> float:
        """
        Request timeout bounded by the remaining deadline.

        Raises:
            FetchCancelled: If the deadline has already passed
        """
        remaining = self.remaining()
        if remaining is None:
            return default
        if remaining <= 0:
            raise FetchCancelled("fetch deadline exceeded")
        return min(default, remaining)
