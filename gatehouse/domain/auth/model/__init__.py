"""Auth domain models."""

from .linked_account import LinkedAccount
from .profile import ContactInfo, ProviderProfile, extract_contact_info
from .token import IssuedRefreshToken, RefreshToken
from .user import CLAIMABLE_FIELDS, User
from .value import CurrentUser, LinkedAccountId, ProviderIdentity, RefreshTokenId, UserId

__all__ = [
    "CLAIMABLE_FIELDS",
    "ContactInfo",
    "CurrentUser",
    "IssuedRefreshToken",
    "LinkedAccount",
    "LinkedAccountId",
    "ProviderIdentity",
    "ProviderProfile",
    "RefreshToken",
    "RefreshTokenId",
    "User",
    "UserId",
    "extract_contact_info",
]
