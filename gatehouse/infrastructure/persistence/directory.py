"""SQL implementation of the identity directory."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from gatehouse.domain.auth.model.linked_account import LinkedAccount
from gatehouse.domain.auth.model.token import RefreshToken
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.auth.model.value import UserId
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.domain.shared.error import ConflictError, DirectoryUnavailableError
from gatehouse.infrastructure.persistence.tables import (
    linked_accounts_table,
    refresh_tokens_table,
    user_roles_table,
    users_table,
)

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on DateTime(timezone=True) columns."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _row_to_user(row: dict, roles: frozenset[str]) -> User:
    """Convert a database row and its role rows to a User model."""
    return User(
        id=UserId(UUID(row["id"])),
        display_name=row["display_name"],
        email=row["email"],
        avatar_url=row["avatar_url"],
        active=row["active"],
        default_role=row["default_role"],
        is_anonymous=row["is_anonymous"],
        roles=roles,
        created_at=_as_utc(row["created_at"]),
    )


def _user_to_dict(user: User) -> dict:
    """Convert a User model to a database row dict (roles are stored separately)."""
    return {
        "id": str(user.id),
        "display_name": user.display_name,
        "email": user.email,
        "avatar_url": user.avatar_url,
        "active": user.active,
        "default_role": user.default_role,
        "is_anonymous": user.is_anonymous,
        "created_at": user.created_at,
    }


def _linked_account_to_dict(account: LinkedAccount) -> dict:
    """Convert a LinkedAccount model to a database row dict."""
    return {
        "id": str(account.id),
        "user_id": str(account.user_id),
        "provider": account.provider,
        "external_id": account.external_id,
        "created_at": account.created_at,
    }


def _refresh_token_to_dict(token: RefreshToken) -> dict:
    """Convert a RefreshToken model to a database row dict."""
    return {
        "id": str(token.id),
        "user_id": str(token.user_id),
        "token_hash": token.token_hash,
        "expires_at": token.expires_at,
        "created_at": token.created_at,
    }


class SqlIdentityDirectory(IdentityDirectory):
    """SQLAlchemy implementation of IdentityDirectory.

    Each call runs in its own transaction, so a failed create leaves no
    partial user behind and a conflict never poisons a caller's session.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def find_linked_user(self, provider: str, external_id: str) -> User | None:
        stmt = (
            select(users_table)
            .join(linked_accounts_table, linked_accounts_table.c.user_id == users_table.c.id)
            .where(
                linked_accounts_table.c.provider == provider,
                linked_accounts_table.c.external_id == external_id,
            )
        )
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                row = result.mappings().first()
                if row is None:
                    return None
                roles = await self._load_roles(conn, row["id"])
        except SQLAlchemyError as e:
            raise self._unavailable("find_linked_user", e) from e

        return _row_to_user(dict(row), roles)

    async def create_user_with_link(self, draft: User, provider: str, external_id: str) -> User:
        account = LinkedAccount.create(user_id=draft.id, provider=provider, external_id=external_id)
        roles = draft.roles or frozenset({draft.default_role})

        try:
            async with self.engine.begin() as conn:
                await conn.execute(insert(users_table).values(**_user_to_dict(draft)))
                await conn.execute(
                    insert(user_roles_table),
                    [{"user_id": str(draft.id), "role": role} for role in sorted(roles)],
                )
                await conn.execute(
                    insert(linked_accounts_table).values(**_linked_account_to_dict(account))
                )
        except IntegrityError as e:
            logger.debug(
                "Link insert rejected: provider=%s, external_id=%s", provider, external_id
            )
            raise ConflictError(
                f"Identity {provider}:{external_id} is already linked",
                code="identity_already_linked",
            ) from e
        except SQLAlchemyError as e:
            raise self._unavailable("create_user_with_link", e) from e

        return draft.model_copy(update={"roles": roles})

    async def insert_refresh_token(self, token: RefreshToken) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.execute(
                    insert(refresh_tokens_table).values(**_refresh_token_to_dict(token))
                )
        except IntegrityError as e:
            raise ConflictError(
                "Refresh token hash already exists",
                code="refresh_token_collision",
            ) from e
        except SQLAlchemyError as e:
            raise self._unavailable("insert_refresh_token", e) from e

    async def _load_roles(self, conn: AsyncConnection, user_id: str) -> frozenset[str]:
        stmt = select(user_roles_table.c.role).where(user_roles_table.c.user_id == user_id)
        result = await conn.execute(stmt)
        return frozenset(result.scalars().all())

    @staticmethod
    def _unavailable(operation: str, error: Exception) -> DirectoryUnavailableError:
        # Statement parameters are left out of the log
        logger.error(
            "Directory query failed: operation=%s, error=%s", operation, type(error).__name__
        )
        return DirectoryUnavailableError(
            f"Identity directory unavailable during {operation}",
            code="directory_unavailable",
        )
