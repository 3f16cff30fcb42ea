"""Authentication routes for the provider login flow."""

import logging
from typing import Annotated

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Query, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from gatehouse.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from gatehouse.domain.auth.model.value import CurrentUser

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"], route_class=DishkaRoute)


class CurrentUserResponse(BaseModel):
    """Response describing the bearer of an access token."""

    id: str
    roles: list[str]
    default_role: str
    is_anonymous: bool


@router.get("/login")
async def initiate_login(handler: FromDishka[InitiateLoginHandler]) -> Response:
    """Initiate the provider login flow.

    Redirects to the identity provider's authorization page.
    """
    result = await handler.run(InitiateLogin())
    return RedirectResponse(url=result.authorization_url, status_code=302)


@router.get("/login/callback")
async def handle_login_callback(
    handler: FromDishka[CompleteLoginHandler],
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
    error_description: Annotated[str | None, Query()] = None,
) -> Response:
    """Handle the callback from the identity provider.

    Redirects to the success URL with the refresh token attached, or to the
    failure URL when the grant cannot be exchanged. Directory and signing
    failures are returned as JSON errors by the global handler.
    """
    if error:
        logger.warning("Provider callback error: %s - %s", error, error_description)

    result = await handler.run(CompleteLogin(code=code, state=state, error=error))
    return RedirectResponse(url=result.redirect_url, status_code=302)


@router.get("/auth/me", response_model=CurrentUserResponse)
async def get_me(current_user: FromDishka[CurrentUser]) -> CurrentUserResponse:
    """Get the claims of the current access token."""
    return CurrentUserResponse(
        id=str(current_user.user_id),
        roles=sorted(current_user.roles),
        default_role=current_user.default_role,
        is_anonymous=current_user.is_anonymous,
    )
