"""Interface for feed id persistence.

The loop reads the store once at construction and writes it every time a
feed is (re)created. There is no transactional guarantee between creating
a feed and persisting its id: a crash in between orphans the server-side
feed, which is an accepted leak.
"""

import abc
from typing import Optional

from ..models.common import FeedId, PersistedFeedRecord


class FeedIdStore(abc.ABC):
    """Abstract Base Class for feed id storage."""

    @abc.abstractmethod
    def read(self) -> Optional[PersistedFeedRecord]:
        """Returns the persisted record, or None if nothing was stored yet."""
        pass

    @abc.abstractmethod
    def write(self, feed_id: FeedId, endpoint_base_path: str) -> None:
        """Persists a freshly created feed id and the endpoint it lives on.

        Raises:
            FeedStoreError: If the record could not be written.
        """
        pass
