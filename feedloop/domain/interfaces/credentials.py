"""Interface for the credential/session provider."""

import abc

from ..models.common import Credentials


class CredentialProvider(abc.ABC):
    """Supplies the tokens for each endpoint call.

    Refresh and expiry are the provider's concern; the loop asks for
    credentials right before every call.
    """

    @abc.abstractmethod
    def credentials(self) -> Credentials:
        pass
