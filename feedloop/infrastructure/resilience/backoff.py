"""Backoff policies consulted by the retry executor between attempts.

A policy instance carries the state of one `execute()` call; executors ask
their factory for a fresh one each time.
"""

import abc
import logging
from typing import Callable, Optional

from feedloop.domain.models.common import RetrySettings

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_INTERVAL_S = 2.0
DEFAULT_MULTIPLIER = 2.0
DEFAULT_MAX_INTERVAL_S = 300.0


class BackoffPolicy(abc.ABC):
    """Decides how long to wait before the next attempt."""

    @abc.abstractmethod
    def next_delay(self) -> Optional[float]:
        """Returns the delay in seconds before the next attempt.

        Returns:
            The delay, or None when no further attempt is allowed.
        """
        pass


class ExponentialBackoff(BackoffPolicy):
    """Exponential backoff capped at `max_interval`.

    With `max_attempts=None` it never gives up.
    """

    def __init__(
        self,
        initial_interval: float = DEFAULT_INITIAL_INTERVAL_S,
        multiplier: float = DEFAULT_MULTIPLIER,
        max_interval: float = DEFAULT_MAX_INTERVAL_S,
        max_attempts: Optional[int] = None,
    ):
        if initial_interval < 0 or max_interval < 0:
            raise ValueError("Backoff intervals must be non-negative")
        if multiplier < 1:
            raise ValueError("Backoff multiplier must be >= 1")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")
        self.initial_interval = initial_interval
        self.multiplier = multiplier
        self.max_interval = max_interval
        self.max_attempts = max_attempts
        self.attempts = 1
        self._current = initial_interval

    def next_delay(self) -> Optional[float]:
        if self.max_attempts is not None and self.attempts >= self.max_attempts:
            return None
        delay = min(self._current, self.max_interval)
        self._current = self._current * self.multiplier
        self.attempts += 1
        return delay

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(initial={self.initial_interval}s, factor={self.multiplier}, "
            f"max={self.max_interval}s, max_attempts={self.max_attempts})"
        )


def exponential_backoff_factory(settings: RetrySettings) -> Callable[[], BackoffPolicy]:
    """Returns a factory building a fresh `ExponentialBackoff` per execution."""
    logger.debug(f"Backoff configured from settings: {settings}")

    def factory() -> BackoffPolicy:
        return ExponentialBackoff(
            initial_interval=settings['initial_interval'],
            multiplier=settings['multiplier'],
            max_interval=settings['max_interval'],
            max_attempts=settings['max_attempts'],
        )

    return factory
