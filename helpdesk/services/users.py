from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import InactiveActorError, NotFoundError, UniqueConstraintViolation
from helpdesk.models.common import utcnow
from helpdesk.models.user import User
from helpdesk.schemas.user import UserCreateIn, UserUpdateIn


logger = logging.getLogger(__name__)

_UNIQUE_FIELDS = ("username", "email")


def _unique_violation(exc: IntegrityError, payload: dict) -> UniqueConstraintViolation | None:
    message = str(exc.orig or exc).lower()
    if "unique" not in message and "duplicate" not in message:
        return None
    # Match the constraint name (postgres) or the qualified column (sqlite), never the echoed value.
    for field in _UNIQUE_FIELDS:
        if f"uq_users_{field}" in message or f"users.{field}" in message:
            return UniqueConstraintViolation(field, payload.get(field))
    return None


async def _commit_user(db: AsyncSession, user: User, values: dict) -> User:
    try:
        await db.flush()
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        translated = _unique_violation(exc, values)
        if translated is None:
            logger.exception("User write failed")
            raise
        logger.warning("User write rejected: %s", translated)
        raise translated from exc
    except Exception:
        await db.rollback()
        raise
    await db.refresh(user)
    return user


async def create_user(db: AsyncSession, payload: UserCreateIn) -> User:
    values = payload.model_dump()
    user = User(
        username=payload.username.strip(),
        email=str(payload.email).strip().lower(),
        full_name=payload.full_name.strip(),
        role=payload.role,
        is_active=True if payload.is_active is None else payload.is_active,
    )
    db.add(user)
    user = await _commit_user(db, user, values)
    logger.info("Created user id=%s username=%s role=%s", user.id, user.username, user.role)
    return user


async def list_users(db: AsyncSession, role: str | None = None) -> list[User]:
    stmt = select(User).where(User.is_active.is_(True)).order_by(User.id)
    if role is not None:
        stmt = stmt.where(User.role == role)
    return list((await db.execute(stmt)).scalars().all())


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    if user_id is None or user_id <= 0:
        return None
    return (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()


async def update_user(db: AsyncSession, user_id: int, payload: UserUpdateIn) -> User | None:
    user = await get_user_by_id(db, user_id)
    if user is None:
        return None

    values = payload.model_dump(exclude_unset=True)
    if "email" in values:
        values["email"] = str(values["email"]).strip().lower()
    for key in ("username", "full_name"):
        if key in values:
            values[key] = values[key].strip()

    changed = {key: value for key, value in values.items() if getattr(user, key) != value}
    if not changed:
        return user

    for key, value in changed.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    return await _commit_user(db, user, changed)


async def require_user(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def require_active_user(db: AsyncSession, user_id: int) -> User:
    user = await require_user(db, user_id)
    if not user.is_active:
        raise InactiveActorError(user_id)
    return user
