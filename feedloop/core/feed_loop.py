"""Core service running the long-poll feed loop.

At the first start a feed is created on the endpoint and its id persisted,
because the endpoint offers no way to look up the feed a client was
reading. On later starts the persisted id is reused. When the endpoint
reports the feed as invalid (a client error on read), a new feed is
created and persisted and the read is retried against it.

`start()` blocks the calling thread. `stop()` may be called from any other
thread; the loop notices it once the read in flight has completed.
"""

import enum
import logging
import threading
import time
from typing import Any, Callable, Iterable, List, Optional, Sequence

from feedloop.domain.errors import (
    LoopAlreadyStartedError,
    NestedRecoveryError,
    RequeueRequestedError,
    TransportError,
)
from feedloop.domain.events.feed_events import (
    DomainEvent,
    EventsDelivered,
    FeedCreated,
    FeedRecreated,
    LoopStopped,
    RequeueDropped,
)
from feedloop.domain.interfaces.credentials import CredentialProvider
from feedloop.domain.interfaces.event_handler import EventHandler
from feedloop.domain.interfaces.feed_endpoint import FeedEndpointClient
from feedloop.domain.interfaces.feed_store import FeedIdStore
from feedloop.domain.models.common import FeedId, PersistedFeedRecord
from feedloop.infrastructure.monitoring import tracing
from feedloop.infrastructure.resilience.backoff import BackoffPolicy, ExponentialBackoff
from feedloop.infrastructure.resilience.classifier import ErrorKind, network_issue_message
from feedloop.infrastructure.resilience.retry_executor import (
    TRANSIENT_ERRORS,
    TRANSIENT_OR_CLIENT_ERRORS,
    RetryExecutor,
    RetrySpec,
)

logger = logging.getLogger(__name__)

AGENT_SUFFIX = "/agent"


class LoopState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


class FeedLoop:
    """Reads one feed forever and hands every batch to the event handler."""

    def __init__(
        self,
        endpoint: FeedEndpointClient,
        credential_provider: CredentialProvider,
        handler: EventHandler,
        store: FeedIdStore,
        backoff_factory: Callable[[], BackoffPolicy] = ExponentialBackoff,
        sleep: Callable[[float], None] = time.sleep,
        observers: Optional[Iterable[Callable[[DomainEvent], Any]]] = None,
    ):
        """Initializes the FeedLoop.

        Args:
            endpoint: Client performing the create/read calls.
            credential_provider: Supplies tokens for every call.
            handler: Receives every non-empty batch of events.
            store: Where the feed id is persisted. Read once, here.
            backoff_factory: Builds the backoff policy for each executor call.
            sleep: Used for backoff waits.
            observers: Callables notified of every domain event.
        """
        self.endpoint = endpoint
        self.credential_provider = credential_provider
        self.handler = handler
        self.store = store
        self._observers: List[Callable[[DomainEvent], Any]] = list(observers or [])
        self._running = threading.Event()
        self._start_lock = threading.Lock()
        self._has_started = False

        record = self._retrieve_feed()
        self._feed_id: Optional[FeedId] = record.feed_id if record else None
        if record and record.endpoint_base_path:
            self.endpoint.set_base_path(record.endpoint_base_path)

        self._create_feed: RetryExecutor[FeedId] = RetryExecutor(
            RetrySpec(
                name="Create Feed",
                operation=self._create_feed_and_persist,
                retry_on=TRANSIENT_ERRORS,
                backoff_factory=backoff_factory,
            ),
            sleep=sleep,
            observer=self._dispatch_event,
        )
        self._read_feed: RetryExecutor[None] = RetryExecutor(
            RetrySpec(
                name="Read Feed",
                operation=self._read_and_handle_events,
                retry_on=TRANSIENT_OR_CLIENT_ERRORS,
                recovery=self._recreate_feed,
                recover_on=frozenset({ErrorKind.CLIENT_ERROR}),
                backoff_factory=backoff_factory,
            ),
            sleep=sleep,
            observer=self._dispatch_event,
        )
        logger.info(f"FeedLoop initialized. Persisted feed: {self._feed_id or 'None'}")

    # --- State ---

    @property
    def feed_id(self) -> Optional[FeedId]:
        return self._feed_id

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def state(self) -> LoopState:
        if self._running.is_set():
            return LoopState.RUNNING
        return LoopState.STOPPED if self._has_started else LoopState.CREATED

    def add_observer(self, observer: Callable[[DomainEvent], Any]) -> None:
        self._observers.append(observer)

    def _dispatch_event(self, event: DomainEvent) -> None:
        logger.debug(f"EVENT: {event}")
        for observer in self._observers:
            observer(event)

    # --- Lifecycle ---

    def start(self) -> None:
        """Runs the loop on the calling thread until `stop()` or a terminal failure.

        Raises:
            LoopAlreadyStartedError: If the loop is already running.
            TransportError: Fatal endpoint failures (e.g. UnauthorizedError),
                or retryable ones once the backoff policy gave up.
            NestedRecoveryError: If recreating an invalid feed failed.
        """
        with self._start_lock:
            if self._running.is_set():
                raise LoopAlreadyStartedError("The feed loop is already started")
            self._running.set()
            self._has_started = True

        if not tracing.has_trace_id():
            tracing.set_trace_id()

        error_type: Optional[str] = None
        try:
            if self._feed_id is None:
                self._feed_id = self._create_feed.execute()
            logger.info(f"Start reading events from feed {self._feed_id}")

            while self._running.is_set():
                self._read_feed.execute()

            logger.info("Feed loop successfully stopped.")
        except (TransportError, NestedRecoveryError) as e:
            error_type = type(e).__name__
            logger.error(f"Feed loop terminated by {error_type}: {e}")
            raise
        except Exception as e:
            # Anything else ends the loop quietly; only endpoint and recovery
            # failures reach the caller.
            error_type = type(e).__name__
            logger.error(f"{network_issue_message(e, self.endpoint.base_path)}\n{e}", exc_info=True)
        finally:
            self._running.clear()
            self._dispatch_event(LoopStopped(feed_id=self._feed_id, error_type=error_type))
            tracing.clear()

    def stop(self) -> None:
        """Asks the loop to stop. Returns immediately.

        The read in flight, if any, completes (and its events are delivered)
        before `start()` returns.
        """
        logger.info("Stopping the feed loop after the current read.")
        self._running.clear()

    # --- Operations run by the executors ---

    def _read_and_handle_events(self) -> None:
        events: Sequence[Any] = self.endpoint.read(self._feed_id, self.credential_provider.credentials())
        if not events:
            logger.debug(f"No events received from feed {self._feed_id}")
            return

        try:
            self.handler.handle(events)
        except RequeueRequestedError as e:
            logger.warning(f"Re-queue is not supported by this feed loop, {len(events)} events will not be re-queued: {e}")
            self._dispatch_event(RequeueDropped(feed_id=self._feed_id, reason=str(e)))
            return

        self._dispatch_event(EventsDelivered(feed_id=self._feed_id, count=len(events)))

    def _recreate_feed(self) -> None:
        logger.info("Recreate a new feed and try again")
        previous = self._feed_id
        self._feed_id = self._create_feed.execute()
        self._dispatch_event(FeedRecreated(previous_feed_id=previous, feed_id=self._feed_id))

    def _create_feed_and_persist(self) -> FeedId:
        feed_id = self.endpoint.create(self.credential_provider.credentials())
        base_path = self._base_path_without_trailing_agent()
        self.store.write(feed_id, base_path)
        logger.debug(f"Feed: {feed_id} was created and persisted")
        self._dispatch_event(FeedCreated(feed_id=feed_id, endpoint_base_path=base_path))
        return feed_id

    def _base_path_without_trailing_agent(self) -> str:
        base_path = self.endpoint.base_path.rstrip("/")
        if base_path.endswith(AGENT_SUFFIX):
            return base_path[:-len(AGENT_SUFFIX)]
        return base_path

    def _retrieve_feed(self) -> Optional[PersistedFeedRecord]:
        logger.debug("Start retrieving feed id")
        return self.store.read()
