"""Concrete implementations of the FeedIdStore interface.

`OnDiskFeedIdStore` keeps a single line `<feed_id>@<endpoint_base_path>` in a
file so a restarted process resumes reading the same feed.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from feedloop.domain.errors import FeedStoreError
from feedloop.domain.interfaces.feed_store import FeedIdStore
from feedloop.domain.models.common import FeedId, PersistedFeedRecord

logger = logging.getLogger(__name__)

FEED_ID_FILE_NAME = "feed.id"
SEPARATOR = "@"


class InMemoryFeedIdStore(FeedIdStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self, record: Optional[PersistedFeedRecord] = None):
        self._record = record

    def read(self) -> Optional[PersistedFeedRecord]:
        return self._record

    def write(self, feed_id: FeedId, endpoint_base_path: str) -> None:
        self._record = PersistedFeedRecord(feed_id=feed_id, endpoint_base_path=endpoint_base_path)


class OnDiskFeedIdStore(FeedIdStore):
    """Stores the feed record in a small text file."""

    def __init__(self, path: Union[str, Path]):
        """Initializes the store.

        Args:
            path: The record file, or an existing directory in which
                `feed.id` is used.
        """
        path = Path(path).expanduser()
        self.file_path = path / FEED_ID_FILE_NAME if path.is_dir() else path
        logger.info(f"OnDiskFeedIdStore initialized at {self.file_path}")

    def read(self) -> Optional[PersistedFeedRecord]:
        logger.debug(f"Reading feed id from {self.file_path}")
        if not self.file_path.is_file():
            logger.debug(f"No feed id file at {self.file_path}")
            return None
        try:
            content = self.file_path.read_text(encoding='utf-8').strip()
        except UnicodeDecodeError as e:
            logger.warning(f"Feed id file {self.file_path} is not valid UTF-8, ignoring it: {e}")
            return None
        except OSError as e:
            logger.error(f"Failed to read feed id file {self.file_path}: {e}")
            return None

        line = content.splitlines()[0].strip() if content else ""
        if not line:
            return None
        feed_id, _, base_path = line.partition(SEPARATOR)
        if not feed_id:
            logger.warning(f"Feed id file {self.file_path} has no feed id, ignoring it")
            return None
        return PersistedFeedRecord(feed_id=FeedId(feed_id), endpoint_base_path=base_path)

    def write(self, feed_id: FeedId, endpoint_base_path: str) -> None:
        logger.debug(f"Writing feed id {feed_id} to {self.file_path}")
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(f"{feed_id}{SEPARATOR}{endpoint_base_path}", encoding='utf-8')
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error(f"Failed to persist feed id to {self.file_path}: {e}")
            raise FeedStoreError(f"Could not write feed id to {self.file_path}: {e}") from e
