import http
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from .service import get_user_detail, list_assets, list_users, system_stats, update_user_role, validate_pagination
from ..access.dependencies import get_current_active_admin
from ..assets.service import serialize_asset
from ..audit.service import list_events, log_event, verify_chain
from ..core.database import get_session
from ..core.responses import envelope, pagination
from ..models.Asset import Category
from ..models.User import User, UserResponse, UserUpdate

# Every route here is admin-only
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users")
async def read_users(
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    session: Session = Depends(get_session),
):
    users, total = await list_users(session, page, limit, search)
    return envelope(data={
        "users": [UserResponse.from_user(user) for user in users],
        "pagination": pagination(page, limit, total),
    })


@router.get("/users/{user_id}")
async def read_user(
    user_id: UUID,
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    session: Session = Depends(get_session),
):
    return envelope(data=await get_user_detail(session, user_id))


@router.patch("/users/{user_id}")
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    session: Session = Depends(get_session),
):
    """
    Change a user's role.
    """
    user = await update_user_role(session, user_id, body)
    action = f"PATCH /admin/users/{user_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, f"Role set to {user.role.value}")
    return envelope(data={"user": UserResponse.from_user(user)}, message="User updated successfully")


@router.get("/assets")
async def read_assets(
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    category: Category | None = None,
    session: Session = Depends(get_session),
):
    assets, total = await list_assets(session, page, limit, search, category)
    return envelope(data={
        "assets": [serialize_asset(asset, include_links=True) for asset in assets],
        "pagination": pagination(page, limit, total),
    })


@router.get("/stats")
async def read_stats(
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    session: Session = Depends(get_session),
):
    return envelope(data=await system_stats(session))


@router.get("/audit-log")
async def read_audit_log(
    current_admin: Annotated[User, Depends(get_current_active_admin)],
    page: int = 1,
    limit: int = 50,
    session: Session = Depends(get_session),
):
    """
    Audit trail, newest first, with the result of re-verifying the hash chain.
    """
    validate_pagination(page, limit)
    entries, total = list_events(session, page, limit)
    return envelope(data={
        "entries": entries,
        "chainValid": verify_chain(session),
        "pagination": pagination(page, limit, total),
    })
