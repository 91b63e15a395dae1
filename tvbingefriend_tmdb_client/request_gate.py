"""Concurrency gate bounding the number of TMDB requests in flight."""

import threading
from collections import deque
from contextlib import contextmanager
from datetime import datetime, UTC
from functools import wraps
from logging import Logger, getLogger
from typing import Any, Callable, Iterator, Optional


class TMDBRequestGate:
    """Bounds simultaneous in-flight requests and admits waiters in FIFO order.

    A caller that finds the gate full queues a ticket and blocks on it. When a
    slot frees up, ``release`` hands it straight to the oldest ticket instead of
    decrementing the counter, so a newcomer can never overtake a queued caller.
    """

    def __init__(self, concurrency_limit: int, logger: Optional[Logger] = None):
        """Initialize the request gate.

        Args:
            concurrency_limit: Maximum requests allowed in flight at once (>= 1)
            logger: Optional logger instance

        Raises:
            ValueError: If concurrency_limit is lower than 1
        """
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")

        self.concurrency_limit = concurrency_limit
        self.logger = logger or getLogger(__name__)

        self._lock = threading.Lock()
        self._in_flight = 0
        self._waiters: deque[threading.Event] = deque()

    @property
    def in_flight(self) -> int:
        """Number of slots currently held."""
        with self._lock:
            return self._in_flight

    @property
    def waiting(self) -> int:
        """Number of callers queued for a slot."""
        with self._lock:
            return len(self._waiters)

    def acquire(self) -> None:
        """Block until a slot is available, then take it."""
        with self._lock:
            if self._in_flight < self.concurrency_limit and not self._waiters:
                self._in_flight += 1
                return
            ticket = threading.Event()
            self._waiters.append(ticket)
            position = len(self._waiters)

        self.logger.debug(
            f"Request gate full ({self.concurrency_limit} in flight). Queued at position {position}."
        )
        # The slot is transferred by release(); in_flight already counts us when this returns.
        ticket.wait()

    def release(self) -> None:
        """Give back a slot, handing it to the oldest waiter if there is one.

        Raises:
            RuntimeError: If called without a matching acquire
        """
        with self._lock:
            if self._in_flight <= 0:
                raise RuntimeError("TMDBRequestGate.release() called without a held slot")
            if self._waiters:
                self._waiters.popleft().set()
            else:
                self._in_flight -= 1

    @contextmanager
    def slot(self) -> Iterator[None]:
        """Hold one slot for the duration of the block."""
        self.acquire()
        try:
            yield
        finally:
            self.release()

    def gated(self, func: Callable) -> Callable:
        """Decorator that runs each call of func inside a gate slot.

        Args:
            func: Function to gate

        Returns:
            Gated function
        """
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            """Wrapper function."""
            with self.slot():
                return func(*args, **kwargs)
        return wrapper

    def get_status(self) -> dict[str, Any]:
        """Get current gate status.

        Returns:
            Dictionary with current concurrency information
        """
        with self._lock:
            in_flight = self._in_flight
            waiting = len(self._waiters)

        return {
            'in_flight': in_flight,
            'concurrency_limit': self.concurrency_limit,
            'waiting': waiting,
            'can_acquire_now': in_flight < self.concurrency_limit and waiting == 0,
            'current_time': datetime.now(UTC).isoformat()
        }
