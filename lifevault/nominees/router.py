import http
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from .service import link_nominee, list_links_for_asset, list_nominees, serialize_nominee, unlink_nominee
from ..access.dependencies import get_current_user, get_resolver, require
from ..access.policy import Action
from ..access.resolver import AccessResolver
from ..assets.service import serialize_link
from ..audit.service import log_event
from ..core.database import get_session
from ..core.responses import envelope
from ..models.Nominee import NomineeLinkCreate
from ..models.User import User

router = APIRouter(prefix="/nominees", tags=["nominees"])


@router.get("")
async def read_nominees(
    current_user: Annotated[User, Depends(require(Action.NOMINEE_DIRECTORY))],
    session: Session = Depends(get_session),
):
    """
    Directory of registered nominees (Owner or Admin).
    """
    nominees = await list_nominees(session)
    return envelope(data=[serialize_nominee(n) for n in nominees])


@router.post("/link", status_code=status.HTTP_201_CREATED)
async def create_link(
    body: NomineeLinkCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
):
    """
    Share an asset with a nominee (the asset's owner only).
    """
    link = await link_nominee(session, resolver, current_user, body)
    action = f"POST /nominees/link {status.HTTP_201_CREATED} {http.HTTPStatus(status.HTTP_201_CREATED).phrase}"
    log_event(session, current_user.id, action, f"Nominee {link.nominee_id} linked to asset {link.asset_id}")
    return envelope(data=serialize_link(link), message="Nominee linked successfully")


@router.delete("/link/{link_id}")
async def delete_link(
    link_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
):
    """
    Revoke a nominee's access to an asset (the asset's owner only).
    """
    asset_id, nominee_id = await unlink_nominee(session, resolver, current_user, link_id)
    action = f"DELETE /nominees/link/{link_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_user.id, action, f"Nominee {nominee_id} unlinked from asset {asset_id}")
    return envelope(message="Nominee unlinked successfully")


@router.get("/asset/{asset_id}")
async def read_asset_links(
    asset_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    resolver: AccessResolver = Depends(get_resolver),
):
    links = await list_links_for_asset(resolver, current_user, asset_id)
    return envelope(data=[serialize_link(link) for link in links])
