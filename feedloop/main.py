"""Composition root for feedloop.

Wires configuration, logging, persistence and backoff into a `FeedLoop`.
The endpoint client, credential provider and event handler are supplied by
the embedding application.
"""

import logging
from typing import Callable, Optional

from feedloop.core.feed_loop import FeedLoop
from feedloop.domain.interfaces.credentials import CredentialProvider
from feedloop.domain.interfaces.event_handler import EventHandler
from feedloop.domain.interfaces.feed_endpoint import FeedEndpointClient
from feedloop.domain.interfaces.feed_store import FeedIdStore
from feedloop.infrastructure.config.settings import (
    get_config,
    get_feed_id_path,
    get_log_level,
    get_retry_settings,
    load_configuration,
)
from feedloop.infrastructure.monitoring.logger_setup import setup_logging
from feedloop.infrastructure.persistence.feed_id_store import OnDiskFeedIdStore
from feedloop.infrastructure.resilience.backoff import BackoffPolicy, exponential_backoff_factory

logger = logging.getLogger(__name__)


def create_feed_loop(
    endpoint: FeedEndpointClient,
    credential_provider: CredentialProvider,
    handler: EventHandler,
    store: Optional[FeedIdStore] = None,
    backoff_factory: Optional[Callable[[], BackoffPolicy]] = None,
    configure_logging: bool = False,
) -> FeedLoop:
    """Builds a FeedLoop from configuration.

    Args:
        endpoint: The feed endpoint client.
        credential_provider: Token source for every call.
        handler: Receives the delivered events.
        store: Feed id store; defaults to the on-disk store at `feed.id_path`.
        backoff_factory: Defaults to exponential backoff from `retry.*` settings.
        configure_logging: Also set up root logging from `logging.*` settings.
    """
    load_configuration()
    if configure_logging:
        setup_logging(log_level=get_log_level(), log_file=get_config('logging.file'))

    store = store or OnDiskFeedIdStore(get_feed_id_path())
    backoff_factory = backoff_factory or exponential_backoff_factory(get_retry_settings())

    logger.info(f"Creating feed loop for endpoint {endpoint.base_path}")
    return FeedLoop(
        endpoint=endpoint,
        credential_provider=credential_provider,
        handler=handler,
        store=store,
        backoff_factory=backoff_factory,
    )
