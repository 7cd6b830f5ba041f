import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from helpdesk.core.errors import InactiveActorError, NotFoundError, UniqueConstraintViolation
from helpdesk.schemas.user import UserCreateIn, UserUpdateIn
from helpdesk.services.users import (
    _unique_violation,
    create_user,
    get_user_by_id,
    list_users,
    require_active_user,
    require_user,
    update_user,
)


def _payload(username: str, email: str, role: str = "CS", **extra) -> UserCreateIn:
    return UserCreateIn(username=username, email=email, full_name="Jane Agent", role=role, **extra)


async def test_create_user_defaults_to_active(db) -> None:
    user = await create_user(db, _payload("jane", "jane@example.com"))
    assert user.id is not None
    assert user.is_active is True
    assert user.role == "CS"


async def test_create_user_rejects_duplicate_username(db) -> None:
    await create_user(db, _payload("jane", "jane@example.com"))
    with pytest.raises(UniqueConstraintViolation) as err:
        await create_user(db, _payload("jane", "other@example.com"))
    assert err.value.field == "username"


async def test_create_user_rejects_duplicate_email(db) -> None:
    await create_user(db, _payload("jane", "jane@example.com"))
    with pytest.raises(UniqueConstraintViolation) as err:
        await create_user(db, _payload("john", "jane@example.com"))
    assert err.value.field == "email"

    # The session stays usable after the rollback.
    assert len(await list_users(db)) == 1


async def test_list_users_hides_inactive_and_filters_role(db, make_user) -> None:
    await make_user("cs_one", role="CS")
    await make_user("tso_one", role="TSO")
    await make_user("tso_gone", role="TSO", is_active=False)

    assert [u.username for u in await list_users(db)] == ["cs_one", "tso_one"]
    assert [u.username for u in await list_users(db, role="TSO")] == ["tso_one"]


async def test_get_user_by_id_returns_none_for_missing_ids(db, make_user) -> None:
    gone = await make_user("gone", is_active=False)
    assert (await get_user_by_id(db, gone.id)).username == "gone"
    assert await get_user_by_id(db, 999) is None
    assert await get_user_by_id(db, 0) is None
    assert await get_user_by_id(db, -4) is None


async def test_update_user_changes_only_supplied_fields(db, make_user) -> None:
    user = await make_user("jane")
    before = user.updated_at

    updated = await update_user(db, user.id, UserUpdateIn(full_name="Jane Doe"))
    assert updated.full_name == "Jane Doe"
    assert updated.email == "jane@example.com"
    assert updated.updated_at != before


async def test_noop_update_keeps_updated_at(db, make_user) -> None:
    user = await make_user("jane", role="NOC")
    before = user.updated_at

    same = await update_user(db, user.id, UserUpdateIn(role="NOC", username="jane"))
    assert same.updated_at == before


async def test_update_user_missing_returns_none(db) -> None:
    assert await update_user(db, 42, UserUpdateIn(full_name="Nobody")) is None


async def test_update_user_collision(db, make_user) -> None:
    await make_user("jane")
    john = await make_user("john")
    with pytest.raises(UniqueConstraintViolation) as err:
        await update_user(db, john.id, UserUpdateIn(email="jane@example.com"))
    assert err.value.field == "email"


def test_update_payload_rejects_explicit_null() -> None:
    with pytest.raises(ValidationError):
        UserUpdateIn(username=None)


async def test_require_helpers(db, make_user) -> None:
    active = await make_user("jane")
    inactive = await make_user("john", is_active=False)

    assert (await require_active_user(db, active.id)).id == active.id
    assert (await require_user(db, inactive.id)).id == inactive.id
    with pytest.raises(InactiveActorError):
        await require_active_user(db, inactive.id)
    with pytest.raises(NotFoundError):
        await require_user(db, 404)


def test_unique_violation_reads_postgres_constraint_name() -> None:
    exc = IntegrityError(
        "INSERT INTO users ...",
        {},
        Exception(
            'duplicate key value violates unique constraint "uq_users_email"\n'
            "DETAIL:  Key (email)=(username@x.io) already exists."
        ),
    )
    translated = _unique_violation(exc, {"username": "bob", "email": "username@x.io"})
    assert translated is not None
    assert translated.field == "email"


def test_unique_violation_reads_sqlite_column() -> None:
    exc = IntegrityError("INSERT INTO users ...", {}, Exception("UNIQUE constraint failed: users.username"))
    assert _unique_violation(exc, {"username": "email"}).field == "username"


def test_unique_violation_ignores_other_integrity_errors() -> None:
    exc = IntegrityError("INSERT INTO users ...", {}, Exception("NOT NULL constraint failed: users.email"))
    assert _unique_violation(exc, {}) is None
