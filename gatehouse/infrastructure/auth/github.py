"""GitHub OAuth client adapter."""

import logging
from typing import Any
from urllib.parse import urlencode

import httpx

from gatehouse.config import GithubConfig
from gatehouse.domain.auth.model.profile import ProviderProfile
from gatehouse.domain.auth.port.oauth_client import OAuthClient
from gatehouse.domain.shared.error import ProviderExchangeFailedError
from gatehouse.infrastructure.auth.state import OAuthStateSigner

logger = logging.getLogger(__name__)

EMAIL_SCOPE = "user:email"


class GithubOAuthClient(OAuthClient):
    """OAuthClient implementation for GitHub (and GitHub Enterprise) OAuth apps."""

    def __init__(
        self,
        config: GithubConfig,
        callback_url: str,
        http_client: httpx.AsyncClient,
        state_signer: OAuthStateSigner,
    ) -> None:
        self._config = config
        self._callback_url = callback_url
        self._http = http_client
        self._state = state_signer

    @property
    def provider_name(self) -> str:
        return "github"

    def get_authorization_url(self) -> str:
        """Generate GitHub authorization URL with a fresh signed state."""
        params = {
            "client_id": self._config.client_id,
            "redirect_uri": self._callback_url,
            "scope": " ".join(self._config.scope),
            "state": self._state.create(),
            "response_type": "code",
        }
        return f"{self._config.authorization_url}?{urlencode(params)}"

    async def exchange(self, code: str | None, state: str | None) -> ProviderProfile:
        """Exchange authorization code for the GitHub user profile."""
        if not state or not self._state.verify(state):
            raise ProviderExchangeFailedError(
                "Invalid or expired OAuth state",
                code="oauth_state_invalid",
            )
        if not code:
            raise ProviderExchangeFailedError(
                "Authorization code not provided",
                code="missing_code",
            )

        access_token = await self._exchange_code(code)
        user_data = await self._get_json(self._config.user_profile_url, access_token)

        github_id = user_data.get("id")
        if github_id is None:
            raise ProviderExchangeFailedError(
                "GitHub profile response missing id field",
                code="oauth_error",
            )

        emails: list[str] = [user_data["email"]] if user_data.get("email") else []
        if not emails and EMAIL_SCOPE in self._config.scope:
            emails = await self._get_verified_emails(access_token)

        avatar_url = user_data.get("avatar_url")
        return ProviderProfile(
            provider=self.provider_name,
            external_id=str(github_id),
            display_name=user_data.get("name"),
            username=user_data.get("login"),
            emails=tuple(emails),
            photos=(avatar_url,) if avatar_url else (),
        )

    async def _exchange_code(self, code: str) -> str:
        data = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "code": code,
            "redirect_uri": self._callback_url,
        }

        try:
            response = await self._http.post(
                self._config.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as e:
            logger.exception("GitHub token request failed: %s", e)
            raise ProviderExchangeFailedError(
                "Failed to connect to GitHub",
                code="idp_unavailable",
            ) from e

        if response.status_code != 200:
            logger.error("GitHub token exchange failed: status=%d", response.status_code)
            raise ProviderExchangeFailedError(
                f"GitHub token exchange failed: {response.status_code}",
                code="idp_unavailable",
            )

        # GitHub reports grant errors with a 200 status:
        # {"error": "bad_verification_code", "error_description": "..."}
        token_data = response.json()
        if "error" in token_data or not token_data.get("access_token"):
            error = token_data.get("error", "missing_access_token")
            logger.warning(
                "GitHub rejected authorization code: error=%s, description=%s",
                error,
                token_data.get("error_description"),
            )
            raise ProviderExchangeFailedError(
                f"GitHub rejected authorization code: {error}",
                code="invalid_grant",
            )

        return token_data["access_token"]

    async def _get_json(self, url: str, access_token: str) -> Any:
        try:
            response = await self._http.get(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "GitHub API request failed: url=%s, status=%d", url, e.response.status_code
            )
            raise ProviderExchangeFailedError(
                f"GitHub API request failed: {e.response.status_code}",
                code="idp_unavailable",
            ) from e
        except httpx.RequestError as e:
            logger.exception("GitHub API request failed: url=%s", url)
            raise ProviderExchangeFailedError(
                "Failed to connect to GitHub",
                code="idp_unavailable",
            ) from e

        return response.json()

    async def _get_verified_emails(self, access_token: str) -> list[str]:
        # [{"email": "...", "primary": true, "verified": true, "visibility": "private"}, ...]
        entries = await self._get_json(self._config.user_emails_url, access_token)
        verified = [e for e in entries if e.get("verified") and e.get("email")]
        verified.sort(key=lambda e: not e.get("primary"))
        return [e["email"] for e in verified]
