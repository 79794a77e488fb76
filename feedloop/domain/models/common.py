"""Defines common Value Objects used across the feed loop.

These objects represent simple values like feed identifiers, credentials
and persisted records, keeping types explicit at the collaborator seams.
"""

from dataclasses import dataclass
from typing import NewType, Optional, TypedDict

# === Core Value Objects ===

FeedId = NewType("FeedId", str)            # Opaque server-side feed identifier


@dataclass(frozen=True)
class PersistedFeedRecord:
    """What the feed id store keeps between process restarts."""
    feed_id: FeedId
    endpoint_base_path: str = ""


@dataclass(frozen=True)
class Credentials:
    """The two per-call tokens the endpoint expects."""
    session_token: str
    key_manager_token: str

    def __repr__(self) -> str:
        return "Credentials(session_token=***, key_manager_token=***)"


class RetrySettings(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_attempts: Optional[int]
    initial_interval: float
    multiplier: float
    max_interval: float
