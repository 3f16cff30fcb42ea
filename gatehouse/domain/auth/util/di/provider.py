"""DI provider for auth domain."""

from uuid import UUID

import jwt
from dishka import from_context, provide
from fastapi import HTTPException
from starlette.requests import Request

from gatehouse.config import Config
from gatehouse.domain.auth.command.login import CompleteLoginHandler, InitiateLoginHandler
from gatehouse.domain.auth.model.value import CurrentUser, UserId
from gatehouse.domain.auth.port.identity_directory import IdentityDirectory
from gatehouse.domain.auth.port.oauth_client import OAuthClient
from gatehouse.domain.auth.service.flow import AuthFlowController
from gatehouse.domain.auth.service.reconciler import AccountReconciler
from gatehouse.domain.auth.service.token import TokenIssuer
from gatehouse.util.di.base import Provider
from gatehouse.util.di.scope import Scope


class AuthProvider(Provider):
    """DI provider for auth domain services and handlers."""

    config = from_context(provides=Config, scope=Scope.APP)
    request = from_context(provides=Request, scope=Scope.UOW)

    # Command Handlers
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_login_handler = provide(CompleteLoginHandler, scope=Scope.UOW)

    @provide(scope=Scope.UOW)
    def get_token_issuer(self, config: Config, directory: IdentityDirectory) -> TokenIssuer:
        """Provide TokenIssuer."""
        return TokenIssuer(
            _config=config.auth.jwt,
            _directory=directory,
            _user_fields=tuple(config.auth.user_fields),
        )

    @provide(scope=Scope.UOW)
    def get_account_reconciler(
        self, config: Config, directory: IdentityDirectory
    ) -> AccountReconciler:
        """Provide AccountReconciler."""
        return AccountReconciler(_directory=directory, _default_role=config.auth.default_role)

    @provide(scope=Scope.UOW)
    def get_auth_flow_controller(
        self,
        config: Config,
        oauth_client: OAuthClient,
        reconciler: AccountReconciler,
        token_issuer: TokenIssuer,
    ) -> AuthFlowController:
        """Provide AuthFlowController."""
        return AuthFlowController(
            _oauth_client=oauth_client,
            _reconciler=reconciler,
            _token_issuer=token_issuer,
            _success_redirect_url=config.auth.success_redirect_url,
            _failure_redirect_url=config.auth.failure_redirect_url,
        )

    @provide(scope=Scope.UOW)
    def get_current_user(self, request: Request, token_issuer: TokenIssuer) -> CurrentUser:
        """Extract and validate CurrentUser from JWT in Authorization header.

        Raises:
            HTTPException: If token is missing, expired, or invalid
        """
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            raise HTTPException(
                status_code=401,
                detail={"code": "missing_token", "message": "Authorization header required"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header[7:]  # Remove "Bearer " prefix

        try:
            payload = token_issuer.validate_access_token(token)
            return CurrentUser(
                user_id=UserId(UUID(payload["sub"])),
                roles=frozenset(payload.get("roles", [])),
                default_role=payload["default_role"],
                is_anonymous=payload.get("is_anonymous", False),
            )
        except jwt.ExpiredSignatureError as e:
            raise HTTPException(
                status_code=401,
                detail={"code": "token_expired", "message": "Token has expired"},
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
        except (jwt.InvalidTokenError, KeyError, ValueError) as e:
            raise HTTPException(
                status_code=401,
                detail={"code": "invalid_token", "message": "Invalid token"},
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
