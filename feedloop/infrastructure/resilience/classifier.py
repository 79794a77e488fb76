"""Classification of transport failures into retry-policy categories.

`classify` is a pure function of the failure; it never looks at loop state.
"""

import enum
import socket

from feedloop.domain.errors import FatalTransportError, NetworkIssueError, TransportError, UnauthorizedError

TOO_MANY_REQUESTS = 429
BAD_REQUEST = 400

NETWORK_EXCEPTIONS = (ConnectionError, TimeoutError, socket.timeout)


class ErrorKind(enum.Enum):
    NETWORK_ISSUE = "network_issue"  # connectivity / timeout
    MINOR_ERROR = "minor_error"      # transient server-side
    CLIENT_ERROR = "client_error"    # the feed itself is invalid or expired
    FATAL = "fatal"                  # everything else, including 401

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.FATAL


def is_network_issue(error: BaseException) -> bool:
    if isinstance(error, (NetworkIssueError,) + NETWORK_EXCEPTIONS):
        return True
    # A transport error without a response, raised from a socket failure
    if isinstance(error, TransportError) and error.status is None:
        return isinstance(error.__cause__, NETWORK_EXCEPTIONS)
    return False


def is_minor_error(error: BaseException) -> bool:
    if not isinstance(error, TransportError) or error.status is None:
        return False
    return error.status == TOO_MANY_REQUESTS or error.status >= 500


def is_client_error(error: BaseException) -> bool:
    return isinstance(error, TransportError) and error.status == BAD_REQUEST


def classify(error: BaseException) -> ErrorKind:
    """Maps a failure to an `ErrorKind`.

    Args:
        error: The exception raised by an endpoint call.

    Returns:
        NETWORK_ISSUE for connectivity problems, MINOR_ERROR for 429/5xx,
        CLIENT_ERROR for 400, FATAL for anything else.
    """
    if isinstance(error, (FatalTransportError, UnauthorizedError)):
        return ErrorKind.FATAL
    if is_network_issue(error):
        return ErrorKind.NETWORK_ISSUE
    if is_minor_error(error):
        return ErrorKind.MINOR_ERROR
    if is_client_error(error):
        return ErrorKind.CLIENT_ERROR
    return ErrorKind.FATAL


def network_issue_message(error: BaseException, base_path: str) -> str:
    """Builds the hint logged when the loop gives up on an unexpected error."""
    if is_network_issue(error):
        return (
            f"Network error occurred while trying to connect to the feed endpoint at {base_path}. "
            f"Please check that the URL is correct and that the endpoint is reachable."
        )
    return f"An unknown error occurred while reading from the feed endpoint at {base_path}."
