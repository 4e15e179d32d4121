from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from app.core.dependencies import get_current_session, get_gateway, oauth2_scheme
from app.gateway.base import DataGateway
from app.models.session import AuthSession, SessionPublic
from app.models.token import Token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    gateway: Annotated[DataGateway, Depends(get_gateway)],
):
    """
    Sign a dashboard operator in through the backend's auth module.

    The form's `username` field accepts the operator's email (or, on the
    local backend, their username).

    Raises:
        InvalidCredentialsError: Mapped to 401 when the credentials are wrong.
    """
    auth_session = await gateway.sign_in(form_data.username, form_data.password)
    expires_at = (
        int(auth_session.expires_at.timestamp()) if auth_session.expires_at else None
    )
    return Token(
        access_token=auth_session.access_token,
        token_type="bearer",
        expires_at=expires_at,
    )


@router.get("/session", response_model=SessionPublic)
async def read_session(
    auth_session: Annotated[AuthSession, Depends(get_current_session)],
):
    return auth_session


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: Annotated[str, Depends(oauth2_scheme)],
    auth_session: Annotated[AuthSession, Depends(get_current_session)],
    gateway: Annotated[DataGateway, Depends(get_gateway)],
):
    """End the current session. Live views mounted with the same token close."""
    await gateway.sign_out(token)
