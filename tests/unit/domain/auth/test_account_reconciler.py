"""Unit tests for AccountReconciler."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from gatehouse.domain.auth.model.profile import ProviderProfile
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.auth.service.reconciler import AccountReconciler
from gatehouse.domain.shared.error import ConflictError, DirectoryUnavailableError
from gatehouse.infrastructure.persistence.memory import InMemoryIdentityDirectory


def make_profile(**overrides) -> ProviderProfile:
    """The "Ada" profile: a GitHub user with one email and no photos."""
    values = {
        "provider": "github",
        "external_id": "42",
        "display_name": "Ada",
        "username": "ada",
        "emails": ("ada@x.io",),
        "photos": (),
    }
    values.update(overrides)
    return ProviderProfile(**values)


class SlowLookupDirectory(InMemoryIdentityDirectory):
    """Yields to the event loop after every lookup so concurrent logins interleave."""

    async def find_linked_user(self, provider: str, external_id: str) -> User | None:
        user = await super().find_linked_user(provider, external_id)
        await asyncio.sleep(0)
        return user


class TestReconcileFirstLogin:
    @pytest.mark.asyncio
    async def test_creates_user_from_profile(self):
        directory = InMemoryIdentityDirectory()
        reconciler = AccountReconciler(_directory=directory)

        user = await reconciler.reconcile(make_profile())

        assert user.email == "ada@x.io"
        assert user.avatar_url == ""
        assert user.display_name == "Ada"
        assert user.active is True
        assert user.is_anonymous is False
        assert len(directory.users) == 1
        assert len(directory.links) == 1

    @pytest.mark.asyncio
    async def test_new_user_holds_default_role(self):
        reconciler = AccountReconciler(
            _directory=InMemoryIdentityDirectory(), _default_role="member"
        )

        user = await reconciler.reconcile(make_profile())

        assert user.default_role == "member"
        assert user.roles == frozenset({"member"})

    @pytest.mark.asyncio
    async def test_logs_creation_with_username(self, caplog: pytest.LogCaptureFixture) -> None:
        reconciler = AccountReconciler(_directory=InMemoryIdentityDirectory())

        with caplog.at_level(logging.INFO, logger="gatehouse.domain.auth.service.reconciler"):
            user = await reconciler.reconcile(make_profile())

        created = [r for r in caplog.records if "new user created" in r.message.lower()]
        assert len(created) == 1
        assert str(user.id) in created[0].message
        assert "username=ada" in created[0].message

    @pytest.mark.asyncio
    async def test_profile_without_email_or_photo_gets_empty_strings(self):
        reconciler = AccountReconciler(_directory=InMemoryIdentityDirectory())

        user = await reconciler.reconcile(make_profile(emails=(), photos=()))

        assert user.email == ""
        assert user.avatar_url == ""

    @pytest.mark.asyncio
    async def test_first_photo_becomes_avatar(self):
        reconciler = AccountReconciler(_directory=InMemoryIdentityDirectory())

        user = await reconciler.reconcile(
            make_profile(photos=("https://avatars.example/1", "https://avatars.example/2"))
        )

        assert user.avatar_url == "https://avatars.example/1"


class TestReconcileIdempotency:
    @pytest.mark.asyncio
    async def test_second_login_returns_same_user(self):
        directory = InMemoryIdentityDirectory()
        reconciler = AccountReconciler(_directory=directory)

        first = await reconciler.reconcile(make_profile())
        second = await reconciler.reconcile(make_profile())

        assert second.id == first.id
        assert len(directory.users) == 1
        assert len(directory.links) == 1

    @pytest.mark.asyncio
    async def test_existing_user_is_not_updated_from_new_profile(self):
        reconciler = AccountReconciler(_directory=InMemoryIdentityDirectory())

        first = await reconciler.reconcile(make_profile())
        second = await reconciler.reconcile(
            make_profile(display_name="Ada Lovelace", emails=("ada@new.io",))
        )

        assert second.id == first.id
        assert second.email == "ada@x.io"

    @pytest.mark.asyncio
    async def test_different_external_ids_get_different_users(self):
        directory = InMemoryIdentityDirectory()
        reconciler = AccountReconciler(_directory=directory)

        ada = await reconciler.reconcile(make_profile())
        grace = await reconciler.reconcile(make_profile(external_id="43", display_name="Grace"))

        assert ada.id != grace.id
        assert len(directory.users) == 2

    @pytest.mark.asyncio
    async def test_same_external_id_on_other_provider_is_distinct(self):
        directory = InMemoryIdentityDirectory()
        reconciler = AccountReconciler(_directory=directory)

        github_user = await reconciler.reconcile(make_profile())
        other_user = await reconciler.reconcile(make_profile(provider="gitlab"))

        assert github_user.id != other_user.id


class TestReconcileConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_first_logins_create_one_user(self):
        directory = SlowLookupDirectory()
        reconciler = AccountReconciler(_directory=directory)

        users = await asyncio.gather(*(reconciler.reconcile(make_profile()) for _ in range(10)))

        assert len({user.id for user in users}) == 1
        assert len(directory.users) == 1
        assert len(directory.links) == 1

    @pytest.mark.asyncio
    async def test_conflict_rereads_winning_user(self):
        winner = User.create(
            display_name="Ada", email="ada@x.io", avatar_url="", default_role="user"
        )
        directory = AsyncMock()
        directory.find_linked_user.side_effect = [None, winner]
        directory.create_user_with_link.side_effect = ConflictError("already linked")
        reconciler = AccountReconciler(_directory=directory)

        user = await reconciler.reconcile(make_profile())

        assert user is winner
        assert directory.find_linked_user.await_count == 2

    @pytest.mark.asyncio
    async def test_conflict_without_readable_link_is_directory_failure(self):
        directory = AsyncMock()
        directory.find_linked_user.return_value = None
        directory.create_user_with_link.side_effect = ConflictError("already linked")
        reconciler = AccountReconciler(_directory=directory)

        with pytest.raises(DirectoryUnavailableError) as exc_info:
            await reconciler.reconcile(make_profile())

        assert exc_info.value.code == "directory_inconsistent"


class TestReconcileDirectoryFailure:
    @pytest.mark.asyncio
    async def test_lookup_failure_propagates(self):
        directory = AsyncMock()
        directory.find_linked_user.side_effect = DirectoryUnavailableError("down")
        reconciler = AccountReconciler(_directory=directory)

        with pytest.raises(DirectoryUnavailableError):
            await reconciler.reconcile(make_profile())

        directory.create_user_with_link.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_failure_propagates(self):
        directory = AsyncMock()
        directory.find_linked_user.return_value = None
        directory.create_user_with_link.side_effect = DirectoryUnavailableError("down")
        reconciler = AccountReconciler(_directory=directory)

        with pytest.raises(DirectoryUnavailableError):
            await reconciler.reconcile(make_profile())
