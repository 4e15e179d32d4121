from typing import Annotated

from fastapi import Depends, HTTPException, Request, WebSocket, status
from fastapi.security import OAuth2PasswordBearer

from app.core.config import Settings, get_settings
from app.gateway.base import DataGateway
from app.models.session import AuthSession
from app.services.variants import DashboardVariant
from app.services.variants import get_variant as lookup_variant

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def get_gateway(request: Request) -> DataGateway:
    """Return the gateway opened by the application lifespan."""
    return request.app.state.gateway


def get_ws_gateway(websocket: WebSocket) -> DataGateway:
    return websocket.app.state.gateway


def get_variant(
    settings: Annotated[Settings, Depends(get_settings)],
) -> DashboardVariant:
    return lookup_variant(settings.DASHBOARD_VARIANT)


async def get_current_session(
    token: Annotated[str, Depends(oauth2_scheme)],
    gateway: Annotated[DataGateway, Depends(get_gateway)],
) -> AuthSession:
    """
    Resolve the bearer token to a live dashboard session.

    Returns:
        AuthSession: The session the token belongs to.

    Raises:
        HTTPException: 401 Unauthorized if the token is invalid, expired or
            its session was signed out.
    """
    auth_session = await gateway.get_session(token)
    if auth_session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_session
