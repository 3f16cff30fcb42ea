"""Auth flow controller: provider callback to client redirect."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlencode

from gatehouse.domain.auth.model.value import UserId
from gatehouse.domain.auth.port.oauth_client import OAuthClient
from gatehouse.domain.auth.service.reconciler import AccountReconciler
from gatehouse.domain.auth.service.token import TokenIssuer
from gatehouse.domain.shared.error import GatehouseError, ProviderExchangeFailedError
from gatehouse.domain.shared.service import Service

logger = logging.getLogger(__name__)


class FlowState(Enum):
    """States of a single login interaction."""

    START = "start"
    PROVIDER_REDIRECT = "provider_redirect"
    CALLBACK_PENDING = "callback_pending"
    RECONCILED = "reconciled"
    TOKENS_ISSUED = "tokens_issued"
    REDIRECTED = "redirected"
    FAILED = "failed"


TERMINAL_STATES = frozenset({FlowState.REDIRECTED, FlowState.FAILED})


@dataclass
class LoginAttempt:
    """Transient record of one login interaction. Never persisted."""

    state: FlowState = FlowState.START
    redirect_url: str = ""
    user_id: UserId | None = None
    error_code: str | None = None
    access_token: str | None = field(default=None, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.state is FlowState.REDIRECTED

    def advance(self, state: FlowState) -> None:
        if self.state in TERMINAL_STATES:
            raise ValueError(f"Login attempt already finished in state {self.state.value}")
        logger.debug("Login attempt: %s -> %s", self.state.value, state.value)
        self.state = state

    def fail(self, error_code: str) -> None:
        self.advance(FlowState.FAILED)
        self.error_code = error_code


def append_query_param(url: str, name: str, value: str) -> str:
    """Append a query parameter, joining with '&' if the URL already has a query."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode({name: value})}"


class AuthFlowController(Service):
    """Orchestrates a provider sign-in.

    - begin: Redirect the browser to the provider
    - complete: Exchange the grant, reconcile the account, issue tokens and
      redirect back to the client with the refresh token

    Either both tokens are issued and the client lands on the success URL, or
    none is handed out. Exchange failures redirect to the failure URL; directory
    and signing failures propagate to the caller as errors.
    """

    _oauth_client: OAuthClient
    _reconciler: AccountReconciler
    _token_issuer: TokenIssuer
    _success_redirect_url: str
    _failure_redirect_url: str

    def begin(self) -> LoginAttempt:
        """Start a login by building the provider authorization URL."""
        attempt = LoginAttempt()
        attempt.redirect_url = self._oauth_client.get_authorization_url()
        attempt.advance(FlowState.PROVIDER_REDIRECT)
        logger.info("Login initiated: provider=%s", self._oauth_client.provider_name)
        return attempt

    async def complete(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> LoginAttempt:
        """Complete a login from the provider callback.

        Args:
            code: Authorization code from the callback
            state: State parameter from the callback
            error: Error reported by the provider instead of a code (e.g. access_denied)

        Returns:
            The finished attempt, REDIRECTED or FAILED, with its redirect URL

        Raises:
            DirectoryUnavailableError: If reconciliation or token persistence fails
            TokenSigningFailedError: If the access token cannot be signed
        """
        attempt = LoginAttempt(state=FlowState.CALLBACK_PENDING)
        provider = self._oauth_client.provider_name

        if error:
            logger.warning("Provider returned error: provider=%s, error=%s", provider, error)
            return self._fail_to_client(attempt, error)

        try:
            profile = await self._oauth_client.exchange(code, state)
        except ProviderExchangeFailedError as e:
            logger.warning(
                "Provider exchange failed: provider=%s, code=%s, reason=%s",
                provider,
                e.code,
                e.message,
            )
            return self._fail_to_client(attempt, e.code)

        try:
            user = await self._reconciler.reconcile(profile)
            attempt.user_id = user.id
            attempt.advance(FlowState.RECONCILED)

            attempt.access_token = self._token_issuer.issue_access_token(user)
            refresh_token = await self._token_issuer.issue_refresh_token(user)
            attempt.advance(FlowState.TOKENS_ISSUED)
        except GatehouseError as e:
            attempt.access_token = None
            attempt.fail(e.code)
            logger.error(
                "Login aborted: provider=%s, external_id=%s, code=%s, reason=%s",
                provider,
                profile.external_id,
                e.code,
                e.message,
            )
            raise

        attempt.redirect_url = append_query_param(
            self._success_redirect_url, "refresh_token", refresh_token.token
        )
        attempt.advance(FlowState.REDIRECTED)
        logger.info(
            "User authenticated: user_id=%s, provider=%s, external_id=%s",
            user.id,
            provider,
            profile.external_id,
        )
        return attempt

    def _fail_to_client(self, attempt: LoginAttempt, error_code: str) -> LoginAttempt:
        attempt.fail(error_code)
        attempt.redirect_url = self._failure_redirect_url
        return attempt
