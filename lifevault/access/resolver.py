from uuid import UUID

from sqlalchemy import false
from sqlmodel import Session, select
from sqlmodel.sql.expression import SelectOfScalar

from .policy import READ_ACTIONS, AccessFacts, Action, decide
from ..core.errors import NotFoundError
from ..models.Asset import Asset, Document
from ..models.Nominee import Nominee, NomineeLink
from ..models.Role import Role
from ..models.User import User

ASSET_HIDDEN = "Asset not found or access denied"


class AccessResolver:
    """
    Computes the facts the policy engine needs from the current store state.

    Nothing is cached between calls: a link removed a moment ago is already
    invisible to the next lookup.
    """

    def __init__(self, session: Session):
        self.session = session

    def is_linked_nominee(self, user_id: UUID, asset_id: UUID) -> bool:
        statement = (
            select(NomineeLink.id)
            .join(Nominee, Nominee.id == NomineeLink.nominee_id)
            .where(NomineeLink.asset_id == asset_id)
            .where(Nominee.user_id == user_id)
        )
        return self.session.exec(statement).first() is not None

    def facts_for_asset(self, user: User, asset: Asset) -> AccessFacts:
        is_linked = False
        if user.role is Role.NOMINEE:
            is_linked = self.is_linked_nominee(user.id, asset.id)
        return AccessFacts(is_owner=asset.owner_id == user.id, is_linked_nominee=is_linked)

    def authorize_asset(self, user: User, asset_id: UUID, action: Action, forbidden: str | None = None) -> Asset:
        asset = self.session.get(Asset, asset_id)
        if asset is None:
            raise NotFoundError(ASSET_HIDDEN if action in READ_ACTIONS else "Asset not found")
        decide(user.role, action, self.facts_for_asset(user, asset)).enforce(
            forbidden=forbidden,
            not_found=ASSET_HIDDEN,
        )
        return asset

    def authorize_document(self, user: User, document_id: UUID, action: Action, forbidden: str | None = None) -> Document:
        # Documents have no ACL of their own; everything is decided on the parent asset
        document = self.session.get(Document, document_id)
        if document is None:
            raise NotFoundError("Document not found")
        asset = self.session.get(Asset, document.asset_id)
        if asset is None:
            raise NotFoundError("Document not found")
        decide(user.role, action, self.facts_for_asset(user, asset)).enforce(
            forbidden=forbidden,
            not_found="Document not found",
        )
        return document

    def asset_scope(self, user: User) -> SelectOfScalar[Asset]:
        """
        The collection query for "my assets": owners see their own, nominees
        see what is linked to them, admins see everything.
        """
        statement = select(Asset)
        if user.role is Role.OWNER:
            statement = statement.where(Asset.owner_id == user.id)
        elif user.role is Role.NOMINEE:
            statement = (
                statement
                .join(NomineeLink, NomineeLink.asset_id == Asset.id)
                .join(Nominee, Nominee.id == NomineeLink.nominee_id)
                .where(Nominee.user_id == user.id)
            )
        elif user.role is not Role.ADMIN:
            statement = statement.where(false())
        return statement.order_by(Asset.created_at.desc())
