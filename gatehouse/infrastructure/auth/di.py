"""DI provider for auth infrastructure."""

from typing import AsyncIterable

import httpx
from dishka import provide

from gatehouse.config import Config
from gatehouse.domain.auth.port.oauth_client import OAuthClient
from gatehouse.infrastructure.auth.github import GithubOAuthClient
from gatehouse.infrastructure.auth.state import OAuthStateSigner
from gatehouse.util.di.base import Provider
from gatehouse.util.di.scope import Scope

# HTTP client timeout configuration
_HTTP_TIMEOUT = httpx.Timeout(
    connect=5.0,  # Connection timeout
    read=10.0,  # Read timeout
    write=5.0,  # Write timeout
    pool=5.0,  # Pool timeout
)


class AuthInfraProvider(Provider):
    """DI provider for auth infrastructure adapters."""

    @provide(scope=Scope.APP)
    async def get_auth_http_client(self) -> AsyncIterable[httpx.AsyncClient]:
        """Shared HTTP client for provider calls (connection pooling)."""
        async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_oauth_client(self, config: Config, http_client: httpx.AsyncClient) -> OAuthClient:
        """Provide the GitHub OAuth client, built once from configuration."""
        return GithubOAuthClient(
            config=config.auth.github,
            callback_url=config.auth.callback_url,
            http_client=http_client,
            state_signer=OAuthStateSigner(config.auth.jwt.secret, provider="github"),
        )
