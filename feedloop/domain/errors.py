"""Failure taxonomy for the feed loop.

Transport failures are raised by the endpoint client and classified by
the resilience layer. The remaining errors are raised by the loop itself.
"""

from typing import Optional


class FeedLoopError(Exception):
    """Base class for every error raised by feedloop."""


# --- Transport failures (raised by FeedEndpointClient implementations) ---

class TransportError(FeedLoopError):
    """A create/read call against the feed endpoint failed.

    Args:
        message: Human readable description.
        status: HTTP-like status code, or None when no response was received.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (status={self.status})" if self.status is not None else base


class NetworkIssueError(TransportError):
    """The endpoint could not be reached (connection refused, timeout, DNS)."""


class UnauthorizedError(TransportError):
    """The endpoint rejected the credentials."""

    def __init__(self, message: str = "Unauthorized", status: int = 401):
        super().__init__(message, status)


class FatalTransportError(TransportError):
    """A transport failure that no retry can fix."""


# --- Loop failures ---

class NestedRecoveryError(FeedLoopError):
    """The recovery action of a retry executor failed.

    Always terminal: the executor never retries after a failed recovery.
    """

    def __init__(self, message: str, cause: BaseException):
        self.cause = cause
        super().__init__(f"{message}: {cause!r}")
        self.__cause__ = cause


class LoopAlreadyStartedError(FeedLoopError, RuntimeError):
    """start() was called on a loop that is already running."""


class RequeueRequestedError(FeedLoopError):
    """Raised by an event handler to ask for the batch to be delivered again."""


class FeedStoreError(FeedLoopError):
    """The feed id store could not persist a record."""
