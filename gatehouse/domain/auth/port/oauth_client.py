"""OAuth client port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from gatehouse.domain.auth.model.profile import ProviderProfile
from gatehouse.domain.shared.port import Port


class OAuthClient(Port, Protocol):
    """Port for an OAuth2 authorization-code client bound to one provider.

    The client owns the CSRF state parameter: it is issued with the
    authorization URL and checked again on exchange, so no server-side
    session is needed between the two requests.

    Implementations are adapters in infrastructure/ (e.g., GithubOAuthClient).
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique identifier for this provider (e.g., 'github')."""
        ...

    @abstractmethod
    def get_authorization_url(self) -> str:
        """Build the URL to redirect the user to for consent.

        Returns:
            Full provider URL including client id, scope, callback and state
        """
        ...

    @abstractmethod
    async def exchange(self, code: str | None, state: str | None) -> ProviderProfile:
        """Exchange an authorization grant for a verified profile.

        Args:
            code: Authorization code from the provider callback
            state: State parameter echoed back by the provider

        Returns:
            The verified provider profile

        Raises:
            ProviderExchangeFailedError: If the state is invalid, the grant is
                rejected, or the provider cannot be reached
        """
        ...
