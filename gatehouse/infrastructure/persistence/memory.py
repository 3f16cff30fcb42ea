"""In-memory identity directory for tests."""

import asyncio

from gatehouse.domain.auth.model.linked_account import LinkedAccount
from gatehouse.domain.auth.model.token import RefreshToken
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.auth.model.value import ProviderIdentity
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.domain.shared.error import ConflictError


class InMemoryIdentityDirectory(IdentityDirectory):
    """Dict-backed IdentityDirectory.

    A single asyncio.Lock stands in for the database's uniqueness constraint.
    State is exposed as plain attributes so tests can inspect it.
    """

    def __init__(self) -> None:
        self.users: dict[str, User] = {}
        self.links: dict[ProviderIdentity, LinkedAccount] = {}
        self.refresh_tokens: dict[str, RefreshToken] = {}
        self._lock = asyncio.Lock()

    async def find_linked_user(self, provider: str, external_id: str) -> User | None:
        link = self.links.get(ProviderIdentity(provider=provider, external_id=external_id))
        if link is None:
            return None
        return self.users.get(str(link.user_id))

    async def create_user_with_link(self, draft: User, provider: str, external_id: str) -> User:
        identity = ProviderIdentity(provider=provider, external_id=external_id)
        async with self._lock:
            if identity in self.links:
                raise ConflictError(
                    f"Identity {provider}:{external_id} is already linked",
                    code="identity_already_linked",
                )
            roles = draft.roles or frozenset({draft.default_role})
            user = draft.model_copy(update={"roles": roles})
            self.users[str(user.id)] = user
            self.links[identity] = LinkedAccount.create(
                user_id=user.id, provider=provider, external_id=external_id
            )
        return user

    async def insert_refresh_token(self, token: RefreshToken) -> None:
        async with self._lock:
            if token.token_hash in self.refresh_tokens:
                raise ConflictError(
                    "Refresh token hash already exists",
                    code="refresh_token_collision",
                )
            self.refresh_tokens[token.token_hash] = token
