import pytest
from unittest.mock import MagicMock, call

from feedloop.domain.errors import NestedRecoveryError, NetworkIssueError, TransportError, UnauthorizedError
from feedloop.domain.events.feed_events import RetryScheduled
from feedloop.infrastructure.resilience.backoff import ExponentialBackoff
from feedloop.infrastructure.resilience.classifier import ErrorKind
from feedloop.infrastructure.resilience.retry_executor import (
    TRANSIENT_ERRORS,
    TRANSIENT_OR_CLIENT_ERRORS,
    AttemptOutcome,
    RetryExecutor,
    RetrySpec,
)


@pytest.fixture
def sleep():
    return MagicMock()


def make_executor(operation, sleep, **spec_kwargs):
    observer = MagicMock()
    spec = RetrySpec(name="Test Op", operation=operation, **spec_kwargs)
    return RetryExecutor(spec, sleep=sleep, observer=observer), observer


def test_success_on_first_attempt_returns_immediately(sleep):
    operation = MagicMock(return_value="value")
    executor, observer = make_executor(operation, sleep)

    assert executor.execute() == "value"
    operation.assert_called_once()
    sleep.assert_not_called()
    observer.assert_not_called()


def test_transient_failures_are_retried_with_backoff(sleep):
    operation = MagicMock(side_effect=[NetworkIssueError("down"), TransportError("busy", status=500), "value"])
    executor, observer = make_executor(operation, sleep)

    assert executor.execute() == "value"
    assert operation.call_count == 3
    assert sleep.call_args_list == [call(2.0), call(4.0)]
    events = [c.args[0] for c in observer.call_args_list]
    assert all(isinstance(e, RetryScheduled) for e in events)
    assert [(e.attempt_number, e.error_kind) for e in events] == [(1, "network_issue"), (2, "minor_error")]


def test_fatal_failure_is_raised_unchanged_without_retry(sleep):
    error = UnauthorizedError()
    operation = MagicMock(side_effect=error)
    executor, _ = make_executor(operation, sleep, retry_on=TRANSIENT_OR_CLIENT_ERRORS)

    with pytest.raises(UnauthorizedError) as exc_info:
        executor.execute()

    assert exc_info.value is error
    operation.assert_called_once()
    sleep.assert_not_called()


def test_fatal_is_never_retried_even_if_listed(sleep):
    error = ValueError("bug")
    operation = MagicMock(side_effect=error)
    executor, _ = make_executor(operation, sleep, retry_on=frozenset(ErrorKind))

    with pytest.raises(ValueError):
        executor.execute()
    operation.assert_called_once()


def test_kind_outside_retry_on_is_raised(sleep):
    error = TransportError("bad", status=400)
    operation = MagicMock(side_effect=error)
    executor, _ = make_executor(operation, sleep, retry_on=TRANSIENT_ERRORS)

    with pytest.raises(TransportError) as exc_info:
        executor.execute()

    assert exc_info.value is error
    operation.assert_called_once()


def test_recovery_runs_before_retry_on_matching_kind(sleep):
    order = []
    operation = MagicMock(side_effect=[TransportError("bad", status=400), "value"])
    recovery = MagicMock(side_effect=lambda: order.append("recovery"))
    sleep.side_effect = lambda delay: order.append("sleep")
    executor, _ = make_executor(
        operation, sleep,
        retry_on=TRANSIENT_OR_CLIENT_ERRORS,
        recovery=recovery,
        recover_on=frozenset({ErrorKind.CLIENT_ERROR}),
    )

    assert executor.execute() == "value"
    recovery.assert_called_once()
    assert order == ["recovery", "sleep"]


def test_recovery_not_run_for_other_kinds(sleep):
    operation = MagicMock(side_effect=[TransportError("busy", status=503), "value"])
    recovery = MagicMock()
    executor, _ = make_executor(
        operation, sleep,
        retry_on=TRANSIENT_OR_CLIENT_ERRORS,
        recovery=recovery,
        recover_on=frozenset({ErrorKind.CLIENT_ERROR}),
    )

    assert executor.execute() == "value"
    recovery.assert_not_called()


def test_failed_recovery_is_wrapped_and_terminal(sleep):
    cause = RuntimeError("cannot recreate")
    operation = MagicMock(side_effect=TransportError("bad", status=400))
    recovery = MagicMock(side_effect=cause)
    executor, observer = make_executor(
        operation, sleep,
        retry_on=TRANSIENT_OR_CLIENT_ERRORS,
        recovery=recovery,
        recover_on=frozenset({ErrorKind.CLIENT_ERROR}),
    )

    with pytest.raises(NestedRecoveryError) as exc_info:
        executor.execute()

    assert exc_info.value.cause is cause
    operation.assert_called_once()
    recovery.assert_called_once()
    sleep.assert_not_called()
    observer.assert_not_called()


def test_exhausted_backoff_skips_recovery(sleep):
    error = TransportError("bad", status=400)
    operation = MagicMock(side_effect=error)
    recovery = MagicMock()
    executor, observer = make_executor(
        operation, sleep,
        retry_on=TRANSIENT_OR_CLIENT_ERRORS,
        recovery=recovery,
        recover_on=frozenset({ErrorKind.CLIENT_ERROR}),
        backoff_factory=lambda: ExponentialBackoff(max_attempts=1),
    )

    with pytest.raises(TransportError) as exc_info:
        executor.execute()

    assert exc_info.value is error
    operation.assert_called_once()
    recovery.assert_not_called()
    sleep.assert_not_called()
    observer.assert_not_called()


def test_bounded_backoff_raises_last_failure(sleep):
    errors = [NetworkIssueError("one"), NetworkIssueError("two")]
    operation = MagicMock(side_effect=errors)
    executor, _ = make_executor(operation, sleep, backoff_factory=lambda: ExponentialBackoff(max_attempts=2))

    with pytest.raises(NetworkIssueError) as exc_info:
        executor.execute()

    assert exc_info.value is errors[1]
    assert operation.call_count == 2
    sleep.assert_called_once_with(2.0)


def test_each_execution_gets_fresh_backoff(sleep):
    operation = MagicMock(side_effect=[NetworkIssueError("a"), "first", NetworkIssueError("b"), "second"])
    executor, _ = make_executor(operation, sleep)

    assert executor.execute() == "first"
    assert executor.execute() == "second"
    assert sleep.call_args_list == [call(2.0), call(2.0)]


def test_zero_delay_does_not_sleep(sleep):
    operation = MagicMock(side_effect=[NetworkIssueError("a"), "value"])
    executor, _ = make_executor(operation, sleep, backoff_factory=lambda: ExponentialBackoff(initial_interval=0))

    assert executor.execute() == "value"
    sleep.assert_not_called()


def test_custom_classifier_is_used(sleep):
    operation = MagicMock(side_effect=[KeyError("flaky"), "value"])
    executor, _ = make_executor(operation, sleep, classifier=lambda e: ErrorKind.MINOR_ERROR)

    assert executor.execute() == "value"


def test_attempt_outcome_tags():
    assert AttemptOutcome(value=1).ok
    failed = AttemptOutcome(error=ValueError("x"), kind=ErrorKind.FATAL)
    assert not failed.ok
    assert failed.kind is ErrorKind.FATAL


def test_spec_is_immutable():
    spec = RetrySpec(name="x", operation=lambda: None)
    with pytest.raises(AttributeError):
        spec.name = "y"
