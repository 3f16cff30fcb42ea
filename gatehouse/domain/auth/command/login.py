"""Login commands for the provider sign-in flow."""

from gatehouse.domain.auth.service.flow import AuthFlowController
from gatehouse.domain.shared.command import Command, CommandHandler, Result


class InitiateLogin(Command):
    """Command to start the provider login flow."""


class InitiateLoginResult(Result):
    """Result containing the provider authorization URL."""

    authorization_url: str


class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    flow: AuthFlowController

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        attempt = self.flow.begin()
        return InitiateLoginResult(authorization_url=attempt.redirect_url)


class CompleteLogin(Command):
    """Command to complete the login flow from the provider callback."""

    code: str | None = None
    state: str | None = None
    error: str | None = None  # Set by the provider instead of code (e.g. access_denied)


class CompleteLoginResult(Result):
    """Result describing where to send the browser."""

    redirect_url: str
    succeeded: bool
    user_id: str | None = None
    error_code: str | None = None


class CompleteLoginHandler(CommandHandler[CompleteLogin, CompleteLoginResult]):
    """Handler for CompleteLogin command.

    Directory and signing failures propagate as errors; they never produce a
    redirect.
    """

    flow: AuthFlowController

    async def run(self, cmd: CompleteLogin) -> CompleteLoginResult:
        attempt = await self.flow.complete(code=cmd.code, state=cmd.state, error=cmd.error)
        return CompleteLoginResult(
            redirect_url=attempt.redirect_url,
            succeeded=attempt.succeeded,
            user_id=str(attempt.user_id) if attempt.user_id else None,
            error_code=attempt.error_code,
        )
