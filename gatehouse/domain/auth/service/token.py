"""Token issuer for access and refresh tokens."""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from gatehouse.config import JwtConfig
from gatehouse.domain.auth.model.token import IssuedRefreshToken, RefreshToken
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.domain.shared.error import TokenSigningFailedError
from gatehouse.domain.shared.service import Service

logger = logging.getLogger(__name__)


class TokenIssuer(Service):
    """Issues session credentials for a reconciled user.

    - Access tokens are signed JWTs carrying the user's role claims. They are
      never persisted and can only be revoked by expiring.
    - Refresh tokens are opaque random strings. Only their hash is stored, and
      the raw value is returned only after the record is persisted.
    """

    _config: JwtConfig
    _directory: IdentityDirectory
    _user_fields: tuple[str, ...] = ()

    def issue_access_token(self, user: User) -> str:
        """Create a signed JWT access token for a user.

        Claims: sub, roles, default_role, is_anonymous, aud, iat, exp, jti,
        plus every configured additional user field.

        Raises:
            TokenSigningFailedError: If no signing key is configured or the
                configured algorithm cannot sign with it
        """
        if not self._config.secret:
            raise TokenSigningFailedError(
                "JWT signing secret is not configured",
                code="token_signing_failed",
            )

        now = datetime.now(UTC)
        expires_at = now + timedelta(minutes=self._config.access_token_expire_minutes)

        payload: dict[str, Any] = {
            "sub": str(user.id),
            "roles": sorted(user.roles),
            "default_role": user.default_role,
            "is_anonymous": user.is_anonymous,
            "aud": self._config.audience,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_hex(16),
        }
        for field in self._user_fields:
            payload[field] = getattr(user, field)

        try:
            return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)
        except (jwt.PyJWTError, NotImplementedError, ValueError, TypeError) as e:
            logger.error(
                "Access token signing failed: algorithm=%s, error=%s",
                self._config.algorithm,
                type(e).__name__,
            )
            raise TokenSigningFailedError(
                f"Could not sign access token with {self._config.algorithm}",
                code="token_signing_failed",
            ) from e

    def validate_access_token(self, token: str) -> dict[str, Any]:
        """Validate and decode a JWT access token.

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        return jwt.decode(
            token,
            self._config.secret,
            algorithms=[self._config.algorithm],
            audience=self._config.audience,
        )

    async def issue_refresh_token(self, user: User) -> IssuedRefreshToken:
        """Create and persist a new refresh token for a user.

        Raises:
            DirectoryUnavailableError: If the record could not be persisted;
                no token is returned in that case
        """
        raw_token = secrets.token_urlsafe(32)
        record = RefreshToken.create(
            user_id=user.id,
            token_hash=self.hash_token(raw_token),
            expires_in=self.refresh_token_window,
        )
        await self._directory.insert_refresh_token(record)
        return IssuedRefreshToken(token=raw_token, expires_at=record.expires_at)

    @staticmethod
    def hash_token(raw_token: str) -> str:
        """Create the hex-encoded SHA256 hash of a token."""
        return hashlib.sha256(raw_token.encode()).hexdigest()

    @property
    def refresh_token_window(self) -> timedelta:
        return timedelta(minutes=self._config.refresh_token_expire_minutes)
