"""Account reconciler: maps a verified provider profile to a local user."""

import logging

from gatehouse.domain.auth.model.profile import ProviderProfile, extract_contact_info
from gatehouse.domain.auth.model.user import User
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.domain.shared.error import ConflictError, DirectoryUnavailableError
from gatehouse.domain.shared.service import Service

logger = logging.getLogger(__name__)


class AccountReconciler(Service):
    """Finds or creates the local user for an external identity.

    Creation is an upsert-then-fetch: the user and its link are inserted in
    one directory call guarded by the `(provider, external_id)` uniqueness
    constraint. A writer that loses a first-login race sees a conflict and
    returns the winner's user instead of failing.
    """

    _directory: IdentityDirectory
    _default_role: str = "user"

    async def reconcile(self, profile: ProviderProfile) -> User:
        """Resolve the local user for a verified provider profile.

        The provider name travels on `profile.provider`, so this covers
        `reconcile(provider, profile)` with a single argument.

        Raises:
            DirectoryUnavailableError: If the directory fails on lookup or create
        """
        user = await self._directory.find_linked_user(profile.provider, profile.external_id)
        if user is not None:
            return user

        draft = self.draft_user(profile)
        try:
            user = await self._directory.create_user_with_link(
                draft, profile.provider, profile.external_id
            )
        except ConflictError:
            logger.info(
                "Identity linked concurrently, using existing user: provider=%s, external_id=%s",
                profile.provider,
                profile.external_id,
            )
            return await self._reread_linked_user(profile)

        logger.info(
            "New user created: user_id=%s, provider=%s, external_id=%s, username=%s",
            user.id,
            profile.provider,
            profile.external_id,
            profile.username,
        )
        return user

    def draft_user(self, profile: ProviderProfile) -> User:
        """Build the user to create for a first-time sign-in."""
        contact = extract_contact_info(profile)
        return User.create(
            display_name=profile.display_name,
            email=contact.email,
            avatar_url=contact.avatar_url,
            default_role=self._default_role,
        )

    async def _reread_linked_user(self, profile: ProviderProfile) -> User:
        user = await self._directory.find_linked_user(profile.provider, profile.external_id)
        if user is None:
            # Conflict reported but the link is not readable
            raise DirectoryUnavailableError(
                f"Identity {profile.provider}:{profile.external_id} is linked but unreadable",
                code="directory_inconsistent",
            )
        return user
