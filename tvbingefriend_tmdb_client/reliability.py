"""Combined reliability features for TMDB API - concurrency gating and rate-limit backoff."""

import threading
from functools import wraps
from logging import Logger, getLogger
from typing import Any, Callable, Dict, Optional

import requests

from .backoff import TMDBBackoffController, parse_int, parse_retry_after
from .request_gate import TMDBRequestGate

RATE_LIMIT_STATUS = 429
REMAINING_HEADER = 'X-RateLimit-Remaining'
RESET_HEADER = 'X-RateLimit-Reset'
RETRY_AFTER_HEADER = 'retry-after'


class TMDBReliabilityManager:
    """Combines the request gate and backoff controller around each TMDB request.

    Every request holds one gate slot from before its first attempt until its
    final response. 429 responses are retried inside that slot once the shared
    backoff window clears; any other outcome is handed back to the caller.
    """

    def __init__(self,
                 request_gate: TMDBRequestGate,
                 backoff_controller: Optional[TMDBBackoffController] = None,
                 logger: Optional[Logger] = None):
        """Initialize the reliability manager.

        Args:
            request_gate: Gate shared by every request of the run
            backoff_controller: Optional backoff controller (creates default if None)
            logger: Optional logger instance
        """
        self.logger = logger or getLogger(__name__)
        self.request_gate = request_gate
        self.backoff_controller = backoff_controller or TMDBBackoffController(logger=self.logger)

        self._stats_lock = threading.Lock()
        self.attempts = 0
        self.rate_limited_responses = 0

    def _count(self, rate_limited: bool = False) -> None:
        with self._stats_lock:
            if rate_limited:
                self.rate_limited_responses += 1
            else:
                self.attempts += 1

    def _observe_quota(self, response: requests.Response) -> None:
        """Feed rate-limit headers of a non-429 response to the predictive backoff."""
        remaining = parse_int(response.headers.get(REMAINING_HEADER))
        reset = parse_int(response.headers.get(RESET_HEADER))
        self.backoff_controller.trigger_predictive(remaining, reset, self.request_gate.in_flight)

    def reliable_api_call(self, operation_id: str = "tmdb_api") -> Callable:
        """Decorator that gates a request and retries it while rate limited.

        The decorated function must send one HTTP request and return its
        requests.Response. Transport errors it raises propagate unchanged,
        after the gate slot has been released.

        Args:
            operation_id: Identifier for the operation (for logging)

        Returns:
            Decorator function that adds reliability features
        """
        def decorator(func: Callable[..., requests.Response]) -> Callable[..., requests.Response]:
            """Wrap func in a gate slot and a 429 retry loop."""
            @wraps(func)
            def wrapper(*args, **kwargs) -> requests.Response:
                """Wrapper function"""
                with self.request_gate.slot():
                    while True:
                        self.backoff_controller.wait_if_active()
                        self._count()
                        response = func(*args, **kwargs)
                        if response.status_code != RATE_LIMIT_STATUS:
                            break

                        self._count(rate_limited=True)
                        retry_after = parse_retry_after(response.headers.get(RETRY_AFTER_HEADER))
                        self.logger.warning(
                            f"TMDB API rate limited {operation_id}. Retry-After={retry_after}s."
                        )
                        self.backoff_controller.trigger_reactive(retry_after)

                    self._observe_quota(response)
                return response
            return wrapper
        return decorator

    def get_status(self) -> Dict[str, Any]:
        """Get comprehensive status of reliability features.

        Returns:
            Dictionary with status of both gating and backoff features
        """
        with self._stats_lock:
            attempts = self.attempts
            rate_limited = self.rate_limited_responses

        return {
            'request_gate': self.request_gate.get_status(),
            'backoff': self.backoff_controller.get_status(),
            'attempts': attempts,
            'rate_limited_responses': rate_limited,
        }

    def is_healthy(self) -> bool:
        """Check if the API client is in a healthy state.

        Returns:
            True if not in backoff and no caller is queued at the gate
        """
        return not self.backoff_controller.is_active and self.request_gate.waiting == 0
