import logging
from typing import Any
from uuid import UUID

from sqlmodel import Session, func, select

from ..access.policy import Action
from ..access.resolver import AccessResolver
from ..core.clock import utcnow
from ..models.Asset import Asset, AssetCreate, AssetUpdate, Category, Document, DocumentResponse
from ..models.Nominee import Nominee, NomineeLink
from ..models.Role import Role
from ..models.User import User
from ..storage.base import BlobStorage
from ..storage.local import discard_quietly

logger = logging.getLogger(__name__)

MODIFY_FORBIDDEN = "Unauthorized: You can only modify your own assets"
DELETE_FORBIDDEN = "Unauthorized: You can only delete your own assets"


def serialize_link(link: NomineeLink) -> dict[str, Any]:
    nominee: Nominee | None = link.nominee
    return {
        "id": link.id,
        "asset_id": link.asset_id,
        "nominee_id": link.nominee_id,
        "linked_at": link.linked_at,
        "nominee": {
            "id": nominee.id,
            "user_id": nominee.user_id,
            "user": {"id": nominee.user.id, "email": nominee.user.email} if nominee.user else None,
        } if nominee else None,
    }


def serialize_asset(asset: Asset, include_links: bool = False) -> dict[str, Any]:
    """
    Asset with its owner and documents. Nominee links are only included
    when the caller may manage them.
    """
    data = {
        "id": asset.id,
        "owner_id": asset.owner_id,
        "title": asset.title,
        "category": asset.category,
        "created_at": asset.created_at,
        "updated_at": asset.updated_at,
        "owner": {"id": asset.owner.id, "email": asset.owner.email} if asset.owner else None,
        "documents": [DocumentResponse.from_document(d) for d in asset.documents],
    }
    if include_links:
        data["linked_nominees"] = [serialize_link(link) for link in asset.links]
    return data


def can_see_links(user: User, asset: Asset) -> bool:
    return user.role is Role.ADMIN or (user.role is Role.OWNER and asset.owner_id == user.id)


async def list_assets(session: Session, resolver: AccessResolver, user: User) -> list[dict[str, Any]]:
    assets = session.exec(resolver.asset_scope(user)).all()
    return [serialize_asset(asset, include_links=can_see_links(user, asset)) for asset in assets]


async def create_asset(session: Session, owner: User, data: AssetCreate) -> Asset:
    now = utcnow()
    asset = Asset(owner_id=owner.id, title=data.title, category=data.category, created_at=now, updated_at=now)
    session.add(asset)
    session.commit()
    session.refresh(asset)
    logger.info("Asset %s created by %s", asset.id, owner.id)
    return asset


async def get_asset(resolver: AccessResolver, user: User, asset_id: UUID) -> Asset:
    return resolver.authorize_asset(user, asset_id, Action.ASSET_READ)


async def update_asset(session: Session, resolver: AccessResolver, user: User, asset_id: UUID, data: AssetUpdate) -> Asset:
    asset = resolver.authorize_asset(user, asset_id, Action.ASSET_UPDATE, forbidden=MODIFY_FORBIDDEN)

    if data.title is not None:
        asset.title = data.title
    if data.category is not None:
        asset.category = data.category
    asset.updated_at = utcnow()

    session.add(asset)
    session.commit()
    session.refresh(asset)
    return asset


async def delete_asset(session: Session, resolver: AccessResolver, storage: BlobStorage, user: User, asset_id: UUID) -> None:
    """
    Deletes the asset with its documents and nominee links in one commit,
    then removes the stored files. A file that cannot be removed is left behind.
    """
    asset = resolver.authorize_asset(user, asset_id, Action.ASSET_DELETE, forbidden=DELETE_FORBIDDEN)
    keys = [document.file_path for document in asset.documents]

    session.delete(asset)
    session.commit()
    logger.info("Asset %s deleted by %s (%d documents)", asset_id, user.id, len(keys))

    for key in keys:
        discard_quietly(storage, key)


def category_counts(session: Session, statement=None) -> list[dict[str, Any]]:
    statement = statement if statement is not None else select(Asset.category, func.count()).group_by(Asset.category)
    counts = dict(session.exec(statement).all())
    return [{"category": category.value, "count": counts.get(category, 0)} for category in Category]


def document_totals(session: Session) -> tuple[int, int]:
    row = session.exec(select(func.count(Document.id), func.coalesce(func.sum(Document.file_size), 0))).one()
    return row[0], row[1]


async def asset_stats(session: Session) -> dict[str, Any]:
    total_assets = session.exec(select(func.count()).select_from(Asset)).one()
    total_documents, storage_used = document_totals(session)
    return {
        "totalAssets": total_assets,
        "totalDocuments": total_documents,
        "storageUsed": storage_used,
        "assetsByCategory": category_counts(session),
    }
