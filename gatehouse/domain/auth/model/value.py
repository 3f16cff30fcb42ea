"""Value objects for the auth domain."""

from dataclasses import dataclass
from uuid import UUID, uuid4

from pydantic import RootModel


class UserId(RootModel[UUID]):
    """Unique identifier for a User."""

    @classmethod
    def generate(cls) -> "UserId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


class LinkedAccountId(RootModel[UUID]):
    """Unique identifier for a LinkedAccount."""

    @classmethod
    def generate(cls) -> "LinkedAccountId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


class RefreshTokenId(RootModel[UUID]):
    """Unique identifier for a RefreshToken record."""

    @classmethod
    def generate(cls) -> "RefreshTokenId":
        return cls(uuid4())

    def __str__(self) -> str:
        return str(self.root)

    def __hash__(self) -> int:
        return hash(self.root)


@dataclass(frozen=True)
class ProviderIdentity:
    """An external identity from an identity provider.

    Encapsulates provider + external_id together since they're always used as a pair.
    """

    provider: str  # e.g., "github"
    external_id: str  # Provider-specific user ID


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user context extracted from a verified access token."""

    user_id: UserId
    roles: frozenset[str]
    default_role: str
    is_anonymous: bool
