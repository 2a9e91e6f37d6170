import http
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from .service import asset_stats, can_see_links, create_asset, delete_asset, get_asset, list_assets, serialize_asset, update_asset
from ..access.dependencies import get_current_active_admin, get_current_owner, get_current_user, get_resolver, get_storage
from ..access.resolver import AccessResolver
from ..audit.service import log_event
from ..core.database import get_session
from ..core.responses import envelope
from ..models.Asset import AssetCreate, AssetUpdate
from ..models.User import User
from ..storage.base import BlobStorage

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("")
async def read_assets(
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
):
    """
    List the assets visible to the caller: own, linked, or all (admin).
    """
    return envelope(data={"assets": await list_assets(session, resolver, current_user)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_new_asset(
    body: AssetCreate,
    current_owner: Annotated[User, Depends(get_current_owner)],
    session: Session = Depends(get_session),
):
    """
    Create an asset (Owner only).
    """
    asset = await create_asset(session, current_owner, body)
    action = f"POST /assets {status.HTTP_201_CREATED} {http.HTTPStatus(status.HTTP_201_CREATED).phrase}"
    log_event(session, current_owner.id, action, f"Asset {asset.id} created")
    return envelope(data={"asset": serialize_asset(asset, include_links=True)}, message="Asset created successfully")


@router.get("/stats")
async def read_asset_stats(
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    session: Session = Depends(get_session),
):
    """
    Asset and storage totals (Admin only).
    """
    return envelope(data=await asset_stats(session))


@router.get("/{asset_id}")
async def read_asset(
    asset_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    resolver: AccessResolver = Depends(get_resolver),
):
    asset = await get_asset(resolver, current_user, asset_id)
    return envelope(data={"asset": serialize_asset(asset, include_links=can_see_links(current_user, asset))})


@router.patch("/{asset_id}")
async def update_existing_asset(
    asset_id: UUID,
    body: AssetUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
):
    """
    Change an asset's title or category (its owner only).
    """
    asset = await update_asset(session, resolver, current_user, asset_id, body)
    action = f"PATCH /assets/{asset_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_user.id, action, "Asset updated")
    return envelope(data={"asset": serialize_asset(asset, include_links=True)}, message="Asset updated successfully")


@router.delete("/{asset_id}")
async def delete_existing_asset(
    asset_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Session = Depends(get_session),
    resolver: AccessResolver = Depends(get_resolver),
    storage: BlobStorage = Depends(get_storage),
):
    """
    Delete an asset with its documents and nominee links (its owner only).
    """
    await delete_asset(session, resolver, storage, current_user, asset_id)
    action = f"DELETE /assets/{asset_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_user.id, action, "Asset deleted")
    return envelope(message="Asset deleted successfully")
