"""Interface for the remote feed endpoint.

Defines the contract for creating a feed and long-polling it for events.
Implementations raise `TransportError` subclasses so failures can be
classified by the resilience layer.
"""

import abc
from typing import Any, Sequence

from ..models.common import Credentials, FeedId


class FeedEndpointClient(abc.ABC):
    """Abstract Base Class for feed endpoint calls."""

    @property
    @abc.abstractmethod
    def base_path(self) -> str:
        """The base URL the client currently talks to."""
        pass

    @abc.abstractmethod
    def create(self, credentials: Credentials) -> FeedId:
        """Creates a new server-side feed.

        Args:
            credentials: Tokens for this call.

        Returns:
            The id of the new feed.

        Raises:
            TransportError: If the call fails.
        """
        pass

    @abc.abstractmethod
    def read(self, feed_id: FeedId, credentials: Credentials) -> Sequence[Any]:
        """Reads the next batch of events from a feed.

        Long-poll: may block server-side until events arrive or a server
        timeout elapses, in which case an empty batch is returned.

        Raises:
            TransportError: If the call fails.
        """
        pass

    def set_base_path(self, base_path: str) -> None:
        """Pins the client to the node a persisted feed was created on.

        Only meaningful for load-balanced clients; ignored by default.
        """
        return None
