"""Provider profiles and the fallback policy for optional profile fields."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderProfile:
    """Verified identity data returned by a provider after successful auth."""

    provider: str  # e.g., "github"
    external_id: str  # Provider-specific, stable account id
    display_name: str | None
    username: str | None = None
    emails: tuple[str, ...] = ()  # Best first
    photos: tuple[str, ...] = ()  # Avatar URLs, best first


@dataclass(frozen=True)
class ContactInfo:
    """Contact details copied onto a newly created user."""

    email: str
    avatar_url: str


def first_or_empty(values: Sequence[str]) -> str:
    """Return the first non-empty value, or "" when there is none."""
    return next((v for v in values if v), "")


def extract_contact_info(profile: ProviderProfile) -> ContactInfo:
    """Pick the email and avatar for a new user from a provider profile.

    Providers may omit both. Absent values fall back to the empty string.
    """
    return ContactInfo(
        email=first_or_empty(profile.emails),
        avatar_url=first_or_empty(profile.photos),
    )
