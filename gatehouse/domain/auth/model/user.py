"""User aggregate for the auth domain."""

from datetime import UTC, datetime

from gatehouse.domain.auth.model.value import UserId
from gatehouse.domain.shared.model.aggregate import Aggregate

# User attributes that may be copied into access token claims.
CLAIMABLE_FIELDS = frozenset({"display_name", "email", "avatar_url", "active"})


class User(Aggregate):
    """A user of the system.

    Users are created on first sign-in through an identity provider and are
    linked to that provider's account through a LinkedAccount. A user may have
    several linked accounts.

    Invariants:
    - `id` is immutable after creation
    - `is_anonymous` is False for provider sign-ins
    - `default_role` is always one of `roles`
    """

    id: UserId
    display_name: str | None
    email: str = ""
    avatar_url: str = ""
    active: bool = True
    default_role: str
    is_anonymous: bool = False
    roles: frozenset[str] = frozenset()
    created_at: datetime

    @classmethod
    def create(
        cls,
        display_name: str | None,
        email: str,
        avatar_url: str,
        default_role: str,
    ) -> "User":
        """Create a new active, non-anonymous user holding only its default role."""
        return cls(
            id=UserId.generate(),
            display_name=display_name,
            email=email,
            avatar_url=avatar_url,
            active=True,
            default_role=default_role,
            is_anonymous=False,
            roles=frozenset({default_role}),
            created_at=datetime.now(UTC),
        )
