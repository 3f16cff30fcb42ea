"""LinkedAccount entity for the auth domain.

Links a User to an external identity provider account.
"""

from datetime import UTC, datetime

from gatehouse.domain.auth.model.value import LinkedAccountId, UserId
from gatehouse.domain.shared.model.entity import Entity


class LinkedAccount(Entity):
    """A link between a User and an external identity provider account.

    Example: provider="github", external_id="583231"

    Invariants:
    - `(provider, external_id)` is globally unique
    - `user_id`, `provider` and `external_id` are immutable after creation
    """

    id: LinkedAccountId
    user_id: UserId
    provider: str
    external_id: str
    created_at: datetime

    @classmethod
    def create(cls, user_id: UserId, provider: str, external_id: str) -> "LinkedAccount":
        """Create a new identity link."""
        return cls(
            id=LinkedAccountId.generate(),
            user_id=user_id,
            provider=provider,
            external_id=external_id,
            created_at=datetime.now(UTC),
        )
