"""Auth domain ports."""

from .identity_directory import IdentityDirectory
from .oauth_client import OAuthClient

__all__ = ["IdentityDirectory", "OAuthClient"]
