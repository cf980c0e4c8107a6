"""Resilience for idempotent reads: retry with backoff and a client-side circuit breaker."""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import TypeVar, Callable, Any, TYPE_CHECKING

from .exceptions import TransportError

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy applied to GET requests only."""
    max_retries: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    retryable_status_codes: frozenset[int] = frozenset({502, 503, 504})

    @classmethod
    def from_client_config(cls, config: ClientConfig) -> RetryConfig:
        return cls(
            max_retries=config.retry_max_attempts,
            base_delay_seconds=config.retry_backoff_factor,
            retryable_status_codes=frozenset(config.retry_status_codes),
        )

    def is_retryable(self, error: Exception) -> bool:
        """Connection failures (no status) and the listed status codes."""
        if not isinstance(error, TransportError):
            return False
        return error.status_code is None or error.status_code in self.retryable_status_codes

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (0-based), +/- 25% jitter."""
        ceiling = min(
            self.base_delay_seconds * self.exponential_base ** attempt,
            self.max_delay_seconds,
        )
        return ceiling * random.uniform(0.75, 1.25)


def retry_with_backoff(
    func: Callable[..., T],
    config: RetryConfig | None = None,
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Call func, retrying retryable TransportErrors with exponential backoff.

    Anything the policy does not mark retryable (including NotFoundError and
    MalformedResponseError) propagates from the first attempt. Once the
    retries are used up, the last TransportError propagates unchanged.
    """
    config = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except TransportError as e:
            if attempt >= config.max_retries or not config.is_retryable(e):
                raise
            pause = config.delay(attempt)
            attempt += 1
            logger.warning(f"Retry {attempt}/{config.max_retries} in {pause:.1f}s: {e}")
            time.sleep(pause)


class ClientCircuitState:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class ClientCircuitBreaker:
    """
    Stops sending requests to a director endpoint that keeps failing.

    Server errors and connection failures count against the endpoint;
    client errors such as 404 do not. After `recovery_timeout` seconds an
    open breaker lets trial requests through (half open), and
    `success_threshold` successes close it again.
    """
    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    success_threshold: int = 2
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    _state: str = field(default=ClientCircuitState.CLOSED, init=False)
    _failures: int = field(default=0, init=False)
    _trial_successes: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    def before_request(self, locator: str | None = None) -> None:
        """
        Raises:
            TransportError: If the breaker is open and still cooling down
        """
        with self._lock:
            if self._state != ClientCircuitState.OPEN:
                return
            waited = self.clock() - self._opened_at
            if waited < self.recovery_timeout:
                raise TransportError(
                    f"Circuit breaker open after repeated failures; "
                    f"retry in {self.recovery_timeout - waited:.0f}s",
                    locator=locator,
                )
            self._move_to(ClientCircuitState.HALF_OPEN)

    def record_success(self) -> None:
        with self._lock:
            if self._state == ClientCircuitState.HALF_OPEN:
                self._trial_successes += 1
                if self._trial_successes >= self.success_threshold:
                    self._move_to(ClientCircuitState.CLOSED)
            else:
                self._failures = 0

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state == ClientCircuitState.HALF_OPEN or self._failures >= self.failure_threshold:
                self._move_to(ClientCircuitState.OPEN)

    def _move_to(self, state: str) -> None:
        if state == self._state:
            return
        logger.warning(f"Circuit breaker {self._state} -> {state} ({self._failures} failures)")
        self._state = state
        if state == ClientCircuitState.OPEN:
            self._opened_at = self.clock()
        elif state == ClientCircuitState.HALF_OPEN:
            self._trial_successes = 0
        else:
            self._failures = 0
