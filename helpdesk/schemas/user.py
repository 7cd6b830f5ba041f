from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from helpdesk.schemas.common import UserRole, reject_explicit_nulls


class UserCreateIn(BaseModel):
    username: str = Field(min_length=3, max_length=150)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=255)
    role: UserRole
    is_active: bool | None = None


class UserUpdateIn(BaseModel):
    username: str | None = Field(default=None, min_length=3, max_length=150)
    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: UserRole | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _no_null_fields(self) -> "UserUpdateIn":
        return reject_explicit_nulls(self, ("username", "email", "full_name", "role", "is_active"))


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime
