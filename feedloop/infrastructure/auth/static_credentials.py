"""Fixed-token implementation of the CredentialProvider interface."""

import logging
from typing import Optional

from feedloop.domain.interfaces.credentials import CredentialProvider
from feedloop.domain.models.common import Credentials
from feedloop.infrastructure.config.settings import get_config

logger = logging.getLogger(__name__)


class StaticCredentialProvider(CredentialProvider):
    """Returns the same tokens for every call.

    Suitable when tokens are refreshed out of process, or for tests.
    """

    def __init__(self, session_token: Optional[str] = None, key_manager_token: Optional[str] = None):
        session_token = session_token or get_config('auth.session_token')
        key_manager_token = key_manager_token or get_config('auth.key_manager_token', '')
        if not session_token:
            raise ValueError("Session token not provided and auth.session_token is not configured")
        self._credentials = Credentials(session_token=str(session_token), key_manager_token=str(key_manager_token))
        logger.info("StaticCredentialProvider initialized.")

    def credentials(self) -> Credentials:
        return self._credentials
