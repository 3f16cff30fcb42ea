"""RefreshToken entity for the auth domain."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from gatehouse.domain.auth.model.value import RefreshTokenId, UserId
from gatehouse.domain.shared.model.entity import Entity


class RefreshToken(Entity):
    """A persisted opaque refresh token.

    Only the SHA256 hash of the token is stored; the raw value is handed to
    the client once and never kept. Each sign-in inserts a new record, and
    records are exchanged by a separate refresh endpoint.

    Invariants:
    - `token_hash` is a SHA256 hash (64 hex characters)
    - `expires_at` is strictly after `created_at`
    """

    id: RefreshTokenId
    user_id: UserId
    token_hash: str
    expires_at: datetime
    created_at: datetime

    @classmethod
    def create(cls, user_id: UserId, token_hash: str, expires_in: timedelta) -> "RefreshToken":
        """Create a new refresh token record expiring `expires_in` from now."""
        if expires_in <= timedelta(0):
            raise ValueError("expires_in must be positive")
        now = datetime.now(UTC)
        return cls(
            id=RefreshTokenId.generate(),
            user_id=user_id,
            token_hash=token_hash,
            expires_at=now + expires_in,
            created_at=now,
        )


@dataclass(frozen=True)
class IssuedRefreshToken:
    """A refresh token that has been persisted and may be handed to the client."""

    token: str = field(repr=False)
    expires_at: datetime
