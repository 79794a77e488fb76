"""Interfaces for consuming delivered events.

The loop knows nothing about the structure of an event; it only forwards
each batch to an `EventHandler`.
"""

import abc
from typing import Any, Sequence


class EventHandler(abc.ABC):
    """Receives every batch read from the feed."""

    @abc.abstractmethod
    def handle(self, events: Sequence[Any]) -> None:
        """Processes a batch of events.

        Raises:
            RequeueRequestedError: To ask for the batch to be redelivered.
                The feed loop does not support redelivery and drops it.
        """
        pass


class FeedListener(abc.ABC):
    """A subscriber registered on a `ListenerDispatcher`."""

    @abc.abstractmethod
    def on_events(self, events: Sequence[Any]) -> None:
        pass
