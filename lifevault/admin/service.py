import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlmodel import Session, func, select

from ..assets.service import category_counts, document_totals, serialize_asset
from ..auth.service import ensure_nominee_record
from ..core.clock import utcnow
from ..core.errors import NotFoundError, ValidationError
from ..models.Asset import Asset, Category
from ..models.Role import Role
from ..models.User import User, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
RECENT_WINDOW = timedelta(days=30)


def validate_pagination(page: int, limit: int) -> None:
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(
            f"Invalid pagination parameters. Page must be >= 1, limit must be between 1 and {MAX_PAGE_SIZE}"
        )


def count(session: Session, statement) -> int:
    return session.exec(select(func.count()).select_from(statement.subquery())).one()


async def list_users(session: Session, page: int, limit: int, search: str | None = None) -> tuple[list[User], int]:
    validate_pagination(page, limit)

    statement = select(User)
    if search:
        statement = statement.where(func.lower(User.email).contains(search.lower()))

    total = count(session, statement)
    users = session.exec(
        statement.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(users), total


async def get_user_detail(session: Session, user_id: UUID) -> dict[str, Any]:
    """
    A user record; for owners, also their assets with documents and storage totals.
    """
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    detail: dict[str, Any] = {"user": UserResponse.from_user(user)}
    if user.role is Role.OWNER:
        assets = session.exec(
            select(Asset).where(Asset.owner_id == user.id).order_by(Asset.created_at.desc())
        ).all()
        documents = [document for asset in assets for document in asset.documents]
        detail["assets"] = [serialize_asset(asset) for asset in assets]
        detail["stats"] = {
            "totalAssets": len(assets),
            "totalDocuments": len(documents),
            "storageUsed": sum(document.file_size for document in documents),
        }
    return detail


async def update_user_role(session: Session, user_id: UUID, data: UserUpdate) -> User:
    """
    The only way a role changes after registration. Sessions issued under the
    old role stop working on their next request.
    """
    if data.role is None:
        raise ValidationError("Role is required")

    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    previous = user.role
    user.role = data.role
    user.updated_at = utcnow()
    session.add(user)
    if data.role is Role.NOMINEE:
        ensure_nominee_record(session, user)
    session.commit()
    session.refresh(user)

    logger.info("Role of user %s changed from %s to %s", user.id, previous.value, user.role.value)
    return user


async def list_assets(
    session: Session,
    page: int,
    limit: int,
    search: str | None = None,
    category: Category | None = None,
) -> tuple[list[Asset], int]:
    validate_pagination(page, limit)

    statement = select(Asset)
    if search:
        statement = statement.where(func.lower(Asset.title).contains(search.lower()))
    if category:
        statement = statement.where(Asset.category == category)

    total = count(session, statement)
    assets = session.exec(
        statement.order_by(Asset.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(assets), total


async def system_stats(session: Session) -> dict[str, Any]:
    since = utcnow() - RECENT_WINDOW

    total_users = session.exec(select(func.count()).select_from(User)).one()
    total_assets = session.exec(select(func.count()).select_from(Asset)).one()
    total_documents, storage_used = document_totals(session)

    role_counts = dict(session.exec(select(User.role, func.count()).group_by(User.role)).all())

    recent_users = session.exec(select(func.count()).select_from(User).where(User.created_at >= since)).one()
    recent_assets = session.exec(select(func.count()).select_from(Asset).where(Asset.created_at >= since)).one()

    return {
        "totalUsers": total_users,
        "totalAssets": total_assets,
        "totalDocuments": total_documents,
        "storageUsed": storage_used,
        "usersByRole": [{"role": role.value, "count": role_counts.get(role, 0)} for role in Role],
        "assetsByCategory": category_counts(session),
        "recentActivity": {"recentUsers": recent_users, "recentAssets": recent_assets},
    }
