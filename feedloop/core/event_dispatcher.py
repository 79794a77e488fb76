"""Event handler fanning each batch out to subscribed listeners."""

import logging
import threading
from typing import Any, List, Optional, Sequence

from feedloop.domain.errors import RequeueRequestedError
from feedloop.domain.interfaces.event_handler import EventHandler, FeedListener

logger = logging.getLogger(__name__)


class ListenerDispatcher(EventHandler):
    """Delivers every batch to each subscribed `FeedListener`, in subscription order.

    A failing listener does not prevent the others from receiving the
    batch. If any listener asked for a re-queue, the first such request is
    raised once every listener has run.
    """

    def __init__(self, listeners: Optional[Sequence[FeedListener]] = None):
        self._listeners: List[FeedListener] = list(listeners or [])
        # subscribe/unsubscribe may happen on other threads than the loop's
        self._lock = threading.Lock()

    @property
    def listeners(self) -> List[FeedListener]:
        with self._lock:
            return list(self._listeners)

    def subscribe(self, listener: FeedListener) -> None:
        with self._lock:
            self._listeners.append(listener)
        logger.debug(f"Listener subscribed: {type(listener).__name__}")

    def unsubscribe(self, listener: FeedListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
                logger.debug(f"Listener unsubscribed: {type(listener).__name__}")
            else:
                logger.warning(f"Cannot unsubscribe {type(listener).__name__}: not subscribed")

    def handle(self, events: Sequence[Any]) -> None:
        requeue: Optional[RequeueRequestedError] = None
        for listener in self.listeners:
            try:
                listener.on_events(events)
            except RequeueRequestedError as e:
                requeue = requeue or e
            except Exception as e:
                logger.error(f"Listener {type(listener).__name__} failed to handle {len(events)} events: {e}", exc_info=True)
        if requeue is not None:
            raise requeue
