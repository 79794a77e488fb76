"""Generic retry-with-recovery executor.

Runs a fallible operation, classifies every failure into an `ErrorKind`,
optionally runs a recovery action before retrying, and waits between
attempts as dictated by a backoff policy.

Retryable failures stay inside the executor. The caller only sees:
    - the original failure, unchanged, when it is FATAL, outside `retry_on`,
      or when the backoff policy gives up;
    - `NestedRecoveryError` when the recovery action itself fails.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Generic, Optional, TypeVar

from feedloop.domain.errors import NestedRecoveryError
from feedloop.domain.events.feed_events import DomainEvent, RetryScheduled
from feedloop.infrastructure.resilience.backoff import BackoffPolicy, ExponentialBackoff
from feedloop.infrastructure.resilience.classifier import ErrorKind, classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS: FrozenSet[ErrorKind] = frozenset({ErrorKind.NETWORK_ISSUE, ErrorKind.MINOR_ERROR})
TRANSIENT_OR_CLIENT_ERRORS: FrozenSet[ErrorKind] = TRANSIENT_ERRORS | {ErrorKind.CLIENT_ERROR}


@dataclass(frozen=True)
class AttemptOutcome(Generic[T]):
    """Tagged result of a single attempt: a value, or an error and its kind."""
    value: Optional[T] = None
    error: Optional[Exception] = None
    kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RetrySpec(Generic[T]):
    """Immutable description of what to run and how to retry it.

    Attributes:
        name: Used in logs and events.
        operation: The fallible call.
        classifier: Maps a failure to an `ErrorKind`.
        retry_on: Kinds that are retried. FATAL is never retried.
        recovery: Optional corrective action run before retrying.
        recover_on: Kinds that trigger `recovery`.
        backoff_factory: Builds a fresh backoff policy per `execute()` call.
    """
    name: str
    operation: Callable[[], T]
    classifier: Callable[[BaseException], ErrorKind] = classify
    retry_on: FrozenSet[ErrorKind] = TRANSIENT_ERRORS
    recovery: Optional[Callable[[], None]] = None
    recover_on: FrozenSet[ErrorKind] = frozenset()
    backoff_factory: Callable[[], BackoffPolicy] = ExponentialBackoff


class RetryExecutor(Generic[T]):
    """Executes a `RetrySpec`."""

    def __init__(
        self,
        spec: RetrySpec[T],
        sleep: Callable[[float], None] = time.sleep,
        observer: Optional[Callable[[DomainEvent], Any]] = None,
    ):
        self.spec = spec
        self._sleep = sleep
        self._observer = observer
        logger.debug(
            f"RetryExecutor '{spec.name}' initialized: retry_on={sorted(k.value for k in spec.retry_on)}, "
            f"recover_on={sorted(k.value for k in spec.recover_on)}, recovery={'yes' if spec.recovery else 'no'}"
        )

    @property
    def name(self) -> str:
        return self.spec.name

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        if self._observer:
            self._observer(event)

    def _attempt(self) -> AttemptOutcome[T]:
        try:
            return AttemptOutcome(value=self.spec.operation())
        except Exception as e:
            return AttemptOutcome(error=e, kind=self.spec.classifier(e))

    def _should_retry(self, kind: ErrorKind) -> bool:
        return kind.retryable and kind in self.spec.retry_on

    def _should_recover(self, kind: ErrorKind) -> bool:
        return self.spec.recovery is not None and kind in self.spec.recover_on

    def _recover(self, error: Exception) -> None:
        logger.info(f"'{self.name}' failed with {type(error).__name__}, running recovery before retrying")
        try:
            self.spec.recovery()
        except Exception as recovery_error:
            logger.error(f"Recovery of '{self.name}' failed: {recovery_error}")
            raise NestedRecoveryError(f"Recovery of '{self.name}' failed", recovery_error) from recovery_error

    def execute(self) -> T:
        """Runs the operation until it succeeds or fails terminally.

        Returns:
            The operation's result.

        Raises:
            NestedRecoveryError: If the recovery action failed.
            Exception: The original failure when it is not retryable or the
                backoff policy allows no further attempt.
        """
        backoff = self.spec.backoff_factory()
        attempt = 1
        while True:
            outcome = self._attempt()
            if outcome.ok:
                if attempt > 1:
                    logger.info(f"'{self.name}' succeeded on attempt {attempt}")
                return outcome.value

            error, kind = outcome.error, outcome.kind
            if not self._should_retry(kind):
                logger.debug(f"'{self.name}' failed with non-retryable {kind.value} error: {error}")
                raise error

            delay = backoff.next_delay()
            if delay is None:
                logger.error(f"Retries exhausted for '{self.name}' after {attempt} attempts. Last error: {error}")
                raise error

            if self._should_recover(kind):
                self._recover(error)

            logger.warning(
                f"Retryable {kind.value} error in '{self.name}' on attempt {attempt}: {type(error).__name__}: {error}. "
                f"Waiting {delay:.2f}s..."
            )
            self._dispatch_event(RetryScheduled(
                operation=self.name, attempt_number=attempt, error_kind=kind.value, delay_seconds=delay
            ))
            if delay > 0:
                self._sleep(delay)
            attempt += 1
