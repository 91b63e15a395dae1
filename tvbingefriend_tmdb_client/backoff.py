"""Shared backoff window for TMDB API rate limiting."""

import email.utils
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, UTC
from logging import Logger, getLogger
from typing import Any, Callable, Optional

from . import config


def parse_int(value: Any) -> Optional[int]:
    """Parse a header value as an integer, returning None if it isn't one."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_retry_after(value: Optional[str],
                      default_seconds: int = config.DEFAULT_RETRY_AFTER_SECONDS,
                      clock: Callable[[], float] = time.time) -> int:
    """Parse a ``retry-after`` header given either as seconds or as an HTTP date.

    Args:
        value: Raw header value
        default_seconds: Returned when the header is missing or unparseable
        clock: Source of the current epoch time, used for HTTP dates

    Returns:
        Seconds to wait, never negative
    """
    if not value:
        return default_seconds

    as_int = parse_int(value)
    if as_int is not None:
        return max(0, as_int)

    try:
        retry_at = email.utils.parsedate_to_datetime(value.strip())
    except (TypeError, ValueError):
        return default_seconds
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    return max(0, int(retry_at.timestamp() - clock()))


@dataclass
class BackoffWindow:
    """A single cooldown period shared by every caller."""
    reason: str
    duration_seconds: float
    expires_at: float
    cleared: threading.Event = field(default_factory=threading.Event)


class TMDBBackoffController:
    """Process-wide, single-flight cooldown during which no request is dispatched.

    A window is opened either reactively, after the API answered 429, or
    predictively, when the remaining quota reported by the API is smaller than
    the number of requests still in flight. Only one window exists at a time;
    triggers that arrive while it is open are ignored. When the window's timer
    fires, every blocked caller resumes together.
    """

    def __init__(self,
                 safety_margin_seconds: float = config.BACKOFF_SAFETY_MARGIN_SECONDS,
                 clock: Callable[[], float] = time.time,
                 timer_factory: Callable[..., Any] = threading.Timer,
                 logger: Optional[Logger] = None):
        """Initialize the backoff controller.

        Args:
            safety_margin_seconds: Added to every window to absorb clock skew with the server
            clock: Source of the current epoch time
            timer_factory: Builds the timer that closes a window (threading.Timer signature)
            logger: Optional logger instance
        """
        self.safety_margin_seconds = safety_margin_seconds
        self.clock = clock
        self.timer_factory = timer_factory
        self.logger = logger or getLogger(__name__)

        self._lock = threading.Lock()
        self._window: Optional[BackoffWindow] = None
        self.windows_opened = 0

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._window is not None

    @property
    def remaining_seconds(self) -> float:
        """Seconds left in the current window (0.0 when none is open)."""
        with self._lock:
            window = self._window
        if window is None:
            return 0.0
        return max(0.0, window.expires_at - self.clock())

    def wait_if_active(self) -> None:
        """Block until the current window, if any, has cleared."""
        with self._lock:
            window = self._window
        if window is None:
            return

        self.logger.info(
            f"In TMDB backoff period ({window.reason}). "
            f"Waiting {max(0.0, window.expires_at - self.clock()):.1f} seconds."
        )
        window.cleared.wait()

    def trigger_reactive(self, retry_after_seconds: float) -> bool:
        """Open a window after a 429 response.

        Args:
            retry_after_seconds: Value of the response's retry-after header

        Returns:
            True if a new window was opened, False if one was already active
        """
        duration = max(0.0, retry_after_seconds) + self.safety_margin_seconds
        return self._open(duration, f"rate limited, retry-after={retry_after_seconds}s")

    def trigger_predictive(self,
                           remaining: Optional[int],
                           reset_epoch_seconds: Optional[float],
                           in_flight_count: int) -> bool:
        """Open a window if the in-flight requests would exhaust the remaining quota.

        Args:
            remaining: X-RateLimit-Remaining from the last response (None if absent)
            reset_epoch_seconds: X-RateLimit-Reset from the last response (None if absent)
            in_flight_count: Requests currently holding a gate slot

        Returns:
            True if a new window was opened
        """
        if remaining is None or reset_epoch_seconds is None:
            return False
        if remaining >= in_flight_count:
            return False

        duration = max(0.0, reset_epoch_seconds - self.clock()) + self.safety_margin_seconds
        return self._open(
            duration, f"quota nearly exhausted, remaining={remaining} with {in_flight_count} in flight"
        )

    def _open(self, duration: float, reason: str) -> bool:
        with self._lock:
            if self._window is not None:
                return False
            window = BackoffWindow(
                reason=reason,
                duration_seconds=duration,
                expires_at=self.clock() + duration,
            )
            self._window = window
            self.windows_opened += 1

        self.logger.warning(f"TMDB API backoff opened: {reason}. Pausing requests for {duration:.1f} seconds.")
        timer = self.timer_factory(duration, self._close, args=(window,))
        timer.daemon = True
        timer.start()
        return True

    def _close(self, window: BackoffWindow) -> None:
        with self._lock:
            if self._window is window:
                self._window = None
        window.cleared.set()
        self.logger.info("TMDB API backoff period ended. Resuming requests.")

    def get_status(self) -> dict[str, Any]:
        """Get current backoff status.

        Returns:
            Dictionary with backoff window information
        """
        with self._lock:
            window = self._window
            windows_opened = self.windows_opened
        now = self.clock()

        return {
            'in_backoff_period': window is not None,
            'remaining_seconds': max(0.0, window.expires_at - now) if window else 0.0,
            'reason': window.reason if window else None,
            'backoff_until': (
                datetime.fromtimestamp(window.expires_at, UTC).isoformat() if window else None
            ),
            'windows_opened': windows_opened,
            'current_time': datetime.fromtimestamp(now, UTC).isoformat()
        }
