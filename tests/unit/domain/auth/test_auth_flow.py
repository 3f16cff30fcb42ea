"""Unit tests for AuthFlowController and the login command handlers."""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest

from gatehouse.config import JwtConfig
from gatehouse.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from gatehouse.domain.auth.model.profile import ProviderProfile
from gatehouse.domain.auth.service.flow import (
    AuthFlowController,
    FlowState,
    LoginAttempt,
    append_query_param,
)
from gatehouse.domain.auth.service.reconciler import AccountReconciler
from gatehouse.domain.auth.service.token import TokenIssuer
from gatehouse.domain.shared.error import (
    DirectoryUnavailableError,
    ProviderExchangeFailedError,
    TokenSigningFailedError,
)
from gatehouse.infrastructure.persistence.memory import InMemoryIdentityDirectory

SUCCESS_URL = "https://app.example/auth/success"
FAILURE_URL = "https://app.example/auth/failure"


def make_oauth_client(profile: ProviderProfile | None = None) -> MagicMock:
    """Create a mock OAuth client."""
    client = MagicMock()
    client.provider_name = "github"
    client.get_authorization_url = MagicMock(
        return_value="https://github.com/login/oauth/authorize?client_id=abc&state=s"
    )
    client.exchange = AsyncMock(
        return_value=profile
        or ProviderProfile(
            provider="github",
            external_id="42",
            display_name="Ada",
            emails=("ada@x.io",),
        )
    )
    return client


def make_controller(
    oauth_client: MagicMock | None = None,
    directory=None,
    success_url: str = SUCCESS_URL,
    secret: str = "test-secret-key-256-bits-long-xx",
) -> AuthFlowController:
    if directory is None:
        directory = InMemoryIdentityDirectory()
    return AuthFlowController(
        _oauth_client=oauth_client or make_oauth_client(),
        _reconciler=AccountReconciler(_directory=directory),
        _token_issuer=TokenIssuer(_config=JwtConfig(secret=secret), _directory=directory),
        _success_redirect_url=success_url,
        _failure_redirect_url=FAILURE_URL,
    )


def refresh_token_from(url: str) -> str:
    return parse_qs(urlsplit(url).query)["refresh_token"][0]


class TestAppendQueryParam:
    def test_url_without_query(self):
        assert append_query_param("https://a.io/done", "refresh_token", "t") == (
            "https://a.io/done?refresh_token=t"
        )

    def test_url_with_query(self):
        assert append_query_param("https://a.io/done?x=1", "refresh_token", "t") == (
            "https://a.io/done?x=1&refresh_token=t"
        )

    def test_value_is_encoded(self):
        assert append_query_param("https://a.io/", "q", "a b&c") == "https://a.io/?q=a+b%26c"


class TestLoginAttempt:
    def test_cannot_advance_after_terminal_state(self):
        attempt = LoginAttempt()
        attempt.fail("boom")

        with pytest.raises(ValueError):
            attempt.advance(FlowState.RECONCILED)

    def test_access_token_not_in_repr(self):
        attempt = LoginAttempt(access_token="eyJ.secret.sig")

        assert "eyJ.secret.sig" not in repr(attempt)


class TestBegin:
    def test_returns_provider_authorization_url(self):
        controller = make_controller()

        attempt = controller.begin()

        assert attempt.state is FlowState.PROVIDER_REDIRECT
        assert attempt.redirect_url.startswith("https://github.com/login/oauth/authorize")


class TestComplete:
    @pytest.mark.asyncio
    async def test_success_redirects_with_refresh_token(self):
        directory = InMemoryIdentityDirectory()
        controller = make_controller(directory=directory)

        attempt = await controller.complete(code="code", state="state")

        assert attempt.state is FlowState.REDIRECTED
        assert attempt.succeeded
        assert attempt.redirect_url.startswith(f"{SUCCESS_URL}?refresh_token=")
        token = refresh_token_from(attempt.redirect_url)
        assert TokenIssuer.hash_token(token) in directory.refresh_tokens
        assert attempt.access_token is not None
        assert attempt.access_token not in attempt.redirect_url

    @pytest.mark.asyncio
    async def test_success_url_with_query_uses_ampersand(self):
        controller = make_controller(success_url=f"{SUCCESS_URL}?from=login")

        attempt = await controller.complete(code="code", state="state")

        assert attempt.redirect_url.startswith(f"{SUCCESS_URL}?from=login&refresh_token=")

    @pytest.mark.asyncio
    async def test_each_login_gets_new_refresh_token(self):
        directory = InMemoryIdentityDirectory()
        controller = make_controller(directory=directory)

        first = await controller.complete(code="code", state="state")
        second = await controller.complete(code="code", state="state")

        assert first.user_id == second.user_id
        assert refresh_token_from(first.redirect_url) != refresh_token_from(second.redirect_url)
        assert len(directory.refresh_tokens) == 2
        assert len(directory.users) == 1

    @pytest.mark.asyncio
    async def test_exchange_failure_redirects_to_failure_url(self):
        oauth_client = make_oauth_client()
        oauth_client.exchange.side_effect = ProviderExchangeFailedError(
            "bad code", code="invalid_grant"
        )
        directory = InMemoryIdentityDirectory()
        controller = make_controller(oauth_client, directory=directory)

        attempt = await controller.complete(code="bad", state="state")

        assert attempt.state is FlowState.FAILED
        assert attempt.redirect_url == FAILURE_URL
        assert attempt.error_code == "invalid_grant"
        assert directory.users == {}
        assert directory.refresh_tokens == {}

    @pytest.mark.asyncio
    async def test_provider_error_skips_exchange(self):
        oauth_client = make_oauth_client()
        controller = make_controller(oauth_client)

        attempt = await controller.complete(code=None, state="state", error="access_denied")

        assert attempt.state is FlowState.FAILED
        assert attempt.redirect_url == FAILURE_URL
        assert attempt.error_code == "access_denied"
        oauth_client.exchange.assert_not_called()

    @pytest.mark.asyncio
    async def test_directory_failure_propagates_without_token(self):
        directory = AsyncMock()
        directory.find_linked_user.side_effect = DirectoryUnavailableError("down")
        controller = make_controller(directory=directory)

        with pytest.raises(DirectoryUnavailableError):
            await controller.complete(code="code", state="state")

        directory.insert_refresh_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_failure_persists_no_refresh_token(self):
        directory = InMemoryIdentityDirectory()
        directory.create_user_with_link = AsyncMock(side_effect=DirectoryUnavailableError("down"))
        controller = make_controller(directory=directory)

        with pytest.raises(DirectoryUnavailableError):
            await controller.complete(code="code", state="state")

        assert directory.refresh_tokens == {}

    @pytest.mark.asyncio
    async def test_signing_failure_persists_no_refresh_token(self):
        directory = InMemoryIdentityDirectory()
        controller = make_controller(directory=directory, secret="")

        with pytest.raises(TokenSigningFailedError):
            await controller.complete(code="code", state="state")

        assert directory.refresh_tokens == {}


class TestLoginHandlers:
    @pytest.mark.asyncio
    async def test_initiate_login(self):
        handler = InitiateLoginHandler(flow=make_controller())

        result = await handler.run(InitiateLogin())

        assert result.authorization_url.startswith("https://github.com/login/oauth/authorize")

    @pytest.mark.asyncio
    async def test_complete_login_success(self):
        handler = CompleteLoginHandler(flow=make_controller())

        result = await handler.run(CompleteLogin(code="code", state="state"))

        assert result.succeeded is True
        assert result.user_id is not None
        assert result.error_code is None
        assert "refresh_token=" in result.redirect_url

    @pytest.mark.asyncio
    async def test_complete_login_failure(self):
        handler = CompleteLoginHandler(flow=make_controller())

        result = await handler.run(CompleteLogin(error="access_denied"))

        assert result.succeeded is False
        assert result.redirect_url == FAILURE_URL
        assert result.error_code == "access_denied"
