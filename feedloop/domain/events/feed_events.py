"""Domain Events related to the feed loop lifecycle and resilience.

Examples include events for when a feed is created or recreated, when a
retry is scheduled, and when a batch of events is delivered or dropped.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Feed lifecycle events ---

@dataclass
class FeedCreated(DomainEvent):
    """Event triggered when a new feed was created and persisted."""
    feed_id: str
    endpoint_base_path: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class FeedRecreated(DomainEvent):
    """Event triggered when recovery replaced an invalid feed."""
    previous_feed_id: Optional[str]
    feed_id: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class EventsDelivered(DomainEvent):
    """Event triggered after a batch was handed to the event handler."""
    feed_id: str
    count: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class RequeueDropped(DomainEvent):
    """Event triggered when the handler asked for a re-queue that was dropped."""
    feed_id: str
    reason: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class LoopStopped(DomainEvent):
    """Event triggered when start() returns or raises."""
    feed_id: Optional[str]
    error_type: Optional[str] = None
    timestamp: float = field(default_factory=time.time)


# --- Resilience events ---

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed call."""
    operation: str
    attempt_number: int
    error_kind: str
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)
