import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..access.policy import Action, decide
from ..access.resolver import AccessResolver
from ..core.errors import ConflictError, NotFoundError
from ..models.Nominee import Nominee, NomineeLink, NomineeLinkCreate
from ..models.Asset import Asset
from ..models.Role import Role
from ..models.User import User

logger = logging.getLogger(__name__)

LINK_FORBIDDEN = "Unauthorized: You can only link nominees to your own assets"
UNLINK_FORBIDDEN = "Unauthorized: You can only unlink nominees from your own assets"
ALREADY_LINKED = "Nominee already linked to this asset"


def serialize_nominee(nominee: Nominee) -> dict[str, Any]:
    user = nominee.user
    return {
        "id": nominee.id,
        "user_id": nominee.user_id,
        "created_at": nominee.created_at,
        "user": {"id": user.id, "email": user.email, "role": user.role} if user else None,
    }


async def list_nominees(session: Session) -> list[Nominee]:
    statement = select(Nominee).order_by(Nominee.created_at.desc())
    return list(session.exec(statement).all())


async def link_nominee(session: Session, resolver: AccessResolver, owner: User, data: NomineeLinkCreate) -> NomineeLink:
    """
    Grants a nominee read access to one asset.

    Order matters for the error a caller sees: unknown asset (404), someone
    else's asset (403), unknown nominee (404), existing link (409).
    """
    asset = resolver.authorize_asset(owner, data.asset_id, Action.LINK_CREATE, forbidden=LINK_FORBIDDEN)

    nominee = session.get(Nominee, data.nominee_id)
    if nominee is None or nominee.user is None or nominee.user.role is not Role.NOMINEE:
        raise NotFoundError("Nominee not found")

    existing = session.exec(
        select(NomineeLink)
        .where(NomineeLink.asset_id == asset.id)
        .where(NomineeLink.nominee_id == nominee.id)
    ).first()
    if existing:
        raise ConflictError(ALREADY_LINKED)

    link = NomineeLink(asset_id=asset.id, nominee_id=nominee.id)
    session.add(link)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent request inserted the same pair first; the unique constraint decides
        session.rollback()
        raise ConflictError(ALREADY_LINKED)

    session.refresh(link)
    logger.info("Nominee %s linked to asset %s", nominee.id, asset.id)
    return link


async def unlink_nominee(session: Session, resolver: AccessResolver, owner: User, link_id: UUID) -> tuple[UUID, UUID]:
    link = session.get(NomineeLink, link_id)
    if link is None:
        raise NotFoundError("Link not found")

    asset = session.get(Asset, link.asset_id)
    facts = resolver.facts_for_asset(owner, asset)
    decide(owner.role, Action.LINK_DELETE, facts).enforce(forbidden=UNLINK_FORBIDDEN, not_found="Link not found")

    asset_id, nominee_id = link.asset_id, link.nominee_id
    session.delete(link)
    session.commit()
    logger.info("Link %s removed from asset %s", link_id, asset_id)
    return asset_id, nominee_id


async def list_links_for_asset(resolver: AccessResolver, user: User, asset_id: UUID) -> list[NomineeLink]:
    asset = resolver.authorize_asset(user, asset_id, Action.LINK_LIST)
    return list(asset.links)
