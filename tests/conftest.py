import pytest
from unittest.mock import MagicMock

from feedloop.core.feed_loop import FeedLoop
from feedloop.domain.interfaces.credentials import CredentialProvider
from feedloop.domain.interfaces.event_handler import EventHandler
from feedloop.domain.interfaces.feed_endpoint import FeedEndpointClient
from feedloop.domain.models.common import Credentials, FeedId, PersistedFeedRecord
from feedloop.infrastructure.config import settings
from feedloop.infrastructure.monitoring import tracing
from feedloop.infrastructure.persistence.feed_id_store import InMemoryFeedIdStore

BASE_PATH = "https://pod.example.com/agent"
STRIPPED_BASE_PATH = "https://pod.example.com"


@pytest.fixture(autouse=True)
def isolated_configuration(monkeypatch):
    """Keeps tests away from the user's ~/.feedloop/config.yaml and .env."""
    monkeypatch.setattr(settings, "_loaded", True)
    monkeypatch.setattr(settings, "_config", {})
    settings.clear_test_config()
    tracing.clear()
    yield
    settings.clear_test_config()
    tracing.clear()


@pytest.fixture
def credentials():
    return Credentials(session_token="session-token", key_manager_token="km-token")


@pytest.fixture
def credential_provider(credentials):
    mock = MagicMock(spec=CredentialProvider)
    mock.credentials.return_value = credentials
    return mock


@pytest.fixture
def endpoint():
    mock = MagicMock(spec=FeedEndpointClient)
    mock.base_path = BASE_PATH
    mock.create.return_value = FeedId("FD-1")
    return mock


@pytest.fixture
def handler():
    return MagicMock(spec=EventHandler)


@pytest.fixture
def empty_store():
    return InMemoryFeedIdStore()


@pytest.fixture
def persisted_store():
    return InMemoryFeedIdStore(PersistedFeedRecord(feed_id=FeedId("FD-0"), endpoint_base_path=STRIPPED_BASE_PATH))


@pytest.fixture
def no_sleep():
    return MagicMock()


@pytest.fixture
def events_seen():
    """Collects domain events dispatched by the loop."""
    return []


@pytest.fixture
def make_loop(endpoint, credential_provider, handler, no_sleep, events_seen):
    """Builds a FeedLoop over the mocked collaborators and a given store."""
    def _make(store, **kwargs):
        kwargs.setdefault("sleep", no_sleep)
        return FeedLoop(
            endpoint=endpoint,
            credential_provider=credential_provider,
            handler=handler,
            store=store,
            observers=[events_seen.append],
            **kwargs,
        )
    return _make
