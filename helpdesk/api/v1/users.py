from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.db.session import get_db
from helpdesk.models.user import User
from helpdesk.schemas.common import UserRole
from helpdesk.schemas.report import UserDashboardOut
from helpdesk.schemas.user import UserCreateIn, UserOut, UserUpdateIn
from helpdesk.services import users as user_service
from helpdesk.services.dashboard import get_user_dashboard

router = APIRouter(prefix="/users", tags=["users"])


def _as_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    payload: UserCreateIn,
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    user = await user_service.create_user(db, payload)
    return _as_user_out(user)


@router.get("", response_model=list[UserOut])
async def list_users(
    role: UserRole | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[UserOut]:
    return [_as_user_out(u) for u in await user_service.list_users(db, role=role)]


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)) -> UserOut:
    user = await user_service.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _as_user_out(user)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    payload: UserUpdateIn,
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    user = await user_service.update_user(db, user_id, payload)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _as_user_out(user)


@router.get("/{user_id}/dashboard", response_model=UserDashboardOut)
async def user_dashboard(user_id: int, db: AsyncSession = Depends(get_db)) -> UserDashboardOut:
    return await get_user_dashboard(db, user_id)
