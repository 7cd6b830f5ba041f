from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.db.session import get_db
from helpdesk.services.users import get_user_by_id


bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AuthUser:
    user_id: int
    username: str
    full_name: str
    role: str


def _decode_token(token: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "algorithms": [settings.jwt_algorithm],
        "leeway": settings.jwt_exp_leeway_seconds,
    }

    if settings.jwt_audience:
        kwargs["audience"] = settings.jwt_audience
    else:
        kwargs["options"] = {"verify_aud": False}

    if settings.jwt_issuer:
        kwargs["issuer"] = settings.jwt_issuer

    try:
        payload = jwt.decode(token, settings.jwt_secret, **kwargs)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    return payload


def _parse_payload(payload: dict[str, Any]) -> int:
    raw_id = payload.get("user_id") or payload.get("sub")
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=401, detail="Invalid user_id claim") from exc
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Invalid user_id claim")
    return user_id


async def _resolve_active_user(db: AsyncSession, user_id: int) -> AuthUser:
    row = await get_user_by_id(db, user_id)
    if row is None:
        raise HTTPException(status_code=401, detail="User not found")
    if not row.is_active:
        raise HTTPException(status_code=403, detail="User is not active")
    return AuthUser(user_id=row.id, username=row.username, full_name=row.full_name, role=row.role)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_db),
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
) -> AuthUser:
    if credentials is not None:
        payload = _decode_token(credentials.credentials)
        return await _resolve_active_user(db, _parse_payload(payload))

    if x_user_id is not None and settings.trust_identity_headers:
        return await _resolve_active_user(db, x_user_id)

    raise HTTPException(status_code=401, detail="Missing bearer token or X-User-Id header")
