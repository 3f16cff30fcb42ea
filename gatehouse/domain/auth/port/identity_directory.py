"""Identity directory port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from gatehouse.domain.auth.model.token import RefreshToken
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.shared.port import Port


class IdentityDirectory(Port, Protocol):
    """Persistent store of users, their linked external identities and refresh tokens.

    The directory is the only shared mutable state between concurrent logins.
    It must enforce uniqueness of `(provider, external_id)` across links.

    Every method raises DirectoryUnavailableError when the backend is
    unreachable or rejects the query. Implementations do not retry.
    """

    @abstractmethod
    async def find_linked_user(self, provider: str, external_id: str) -> User | None:
        """Get the user linked to an external identity, with roles loaded.

        Returns:
            The linked user, or None if the identity has never signed in
        """
        ...

    @abstractmethod
    async def create_user_with_link(self, draft: User, provider: str, external_id: str) -> User:
        """Atomically create a user and its link to an external identity.

        Either both the user (with its roles) and the link are stored, or
        neither is.

        Returns:
            The stored user

        Raises:
            ConflictError: If `(provider, external_id)` is already linked
        """
        ...

    @abstractmethod
    async def insert_refresh_token(self, token: RefreshToken) -> None:
        """Insert a new refresh token record.

        Raises:
            ConflictError: If a record with the same token hash exists
        """
        ...
