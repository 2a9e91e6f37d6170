import logging
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlmodel import Session

from .policy import Action, decide
from .resolver import AccessResolver
from ..auth.tokens import SessionIssuer
from ..core.database import get_session
from ..core.errors import AuthenticationError
from ..core.settings import Settings
from ..models.Token import TokenClaims
from ..models.User import User
from ..storage.base import BlobStorage

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_issuer(request: Request) -> SessionIssuer:
    return request.app.state.issuer

def get_storage(request: Request) -> BlobStorage:
    return request.app.state.storage

def get_resolver(session: Session = Depends(get_session)) -> AccessResolver:
    return AccessResolver(session)


def bearer_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """
    Extracts the token from an `Authorization: Bearer <token>` header.
    """
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError("Invalid authorization header format. Expected: Bearer <token>")
    return parts[1]


async def get_setup_claims(
    token: Annotated[str, Depends(bearer_token)],
    issuer: SessionIssuer = Depends(get_issuer),
) -> TokenClaims:
    return issuer.verify_setup_token(token)


async def get_current_user(
    token: Annotated[str, Depends(bearer_token)],
    issuer: SessionIssuer = Depends(get_issuer),
    session: Session = Depends(get_session),
) -> User:
    claims = issuer.verify_session_token(token)

    # The role in the token must still be the role on record
    user = session.get(User, claims.sub)
    if user is None:
        logger.warning("Session token for unknown user %s", claims.sub)
        raise AuthenticationError("Session is no longer valid. Please log in again.")
    if user.role.value != claims.role:
        logger.info("Stale session for user %s: token role %s, current role %s", user.id, claims.role, user.role.value)
        raise AuthenticationError("Session is no longer valid. Please log in again.")
    return user


def require(action: Action):
    """
    Dependency factory for actions decided on role alone (no resource facts).
    """
    async def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        decide(current_user.role, action).enforce()
        return current_user
    return dependency


get_current_owner = require(Action.ASSET_CREATE)
get_current_active_admin = require(Action.ADMIN_ACCESS)
