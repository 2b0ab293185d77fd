import pytest

from app.models import Role
from app.services.auth import (
    AuthUser,
    SessionData,
    can_act_on_user,
    can_demote_last_owner,
    create_access_token,
    decode_access_token,
    get_current_user_with_ban_check,
    require_auth,
    require_role,
)
from app.utils.errors import ForbiddenError, UnauthorizedError

from tests.helpers import make_user


def test_require_auth():
    with pytest.raises(UnauthorizedError):
        require_auth(None)
    user = AuthUser(id=1, username="alice", role="USER")
    assert require_auth(user) is user


def test_require_role_compares_levels():
    admin = AuthUser(id=1, username="mod", role="ADMIN")
    assert require_role(admin, Role.USER) is admin
    assert require_role(admin, "admin") is admin
    with pytest.raises(ForbiddenError):
        require_role(admin, Role.OWNER)
    with pytest.raises(UnauthorizedError):
        require_role(None, Role.USER)


def test_role_levels_are_ordered():
    assert Role.USER.level < Role.ADMIN.level < Role.OWNER.level


async def test_self_action_always_allowed(db):
    user = await make_user(db, "alice")
    assert (await can_act_on_user(user, user.id, db)).allowed


async def test_user_cannot_act_on_others(db):
    alice = await make_user(db, "alice")
    bob = await make_user(db, "bob")
    check = await can_act_on_user(alice, bob.id, db)
    assert not check.allowed
    assert check.reason == "Forbidden"


async def test_admin_acts_on_users_only(db):
    admin = await make_user(db, "mod", Role.ADMIN)
    user = await make_user(db, "alice")
    peer = await make_user(db, "mod2", Role.ADMIN)
    owner = await make_user(db, "boss", Role.OWNER)

    assert (await can_act_on_user(admin, user.id, db)).allowed
    for target in (peer, owner):
        check = await can_act_on_user(admin, target.id, db)
        assert not check.allowed
        assert check.reason == "You cannot modify your superiors or peers"


async def test_owner_acts_on_admins_but_not_owners(db):
    owner = await make_user(db, "boss", Role.OWNER)
    admin = await make_user(db, "mod", Role.ADMIN)
    other_owner = await make_user(db, "boss2", Role.OWNER)

    assert (await can_act_on_user(owner, admin.id, db)).allowed
    check = await can_act_on_user(owner, other_owner.id, db)
    assert not check.allowed
    assert check.reason == "You cannot modify another owner"


async def test_missing_target(db):
    owner = await make_user(db, "boss", Role.OWNER)
    check = await can_act_on_user(owner, 9999, db)
    assert check.reason == "User not found"


async def test_last_owner_guard(db):
    owner = await make_user(db, "boss", Role.OWNER)
    user = await make_user(db, "alice")

    check = await can_demote_last_owner(owner.id, db)
    assert not check.allowed
    assert check.reason == "Cannot demote the last owner"
    assert (await can_demote_last_owner(user.id, db)).allowed

    await make_user(db, "boss2", Role.OWNER)
    assert (await can_demote_last_owner(owner.id, db)).allowed


async def test_ban_check_fast_path_trusts_session(db):
    user = await make_user(db, "alice")
    session = SessionData(user_id=user.id, username="alice", role="USER", is_banned=True)
    assert await get_current_user_with_ban_check(session, db) is None


async def test_ban_check_slow_path_rereads_database(db):
    user = await make_user(db, "alice", is_banned=True)
    # Session issued before the ban
    session = SessionData(user_id=user.id, username="alice", role="USER", is_banned=False)
    assert await get_current_user_with_ban_check(session, db) is None


async def test_current_user_uses_database_role(db):
    user = await make_user(db, "mod", Role.ADMIN)
    session = SessionData(user_id=user.id, username="mod", role="USER", is_banned=False)
    current = await get_current_user_with_ban_check(session, db)
    assert current.role == "ADMIN"
    assert current.is_moderator


def test_access_token_round_trip():
    token = create_access_token(5, "alice", "ADMIN")
    session = decode_access_token(token)
    assert session == SessionData(user_id=5, username="alice", role="ADMIN", is_banned=False)
    assert decode_access_token(token + "x") is None
    assert decode_access_token("not-a-token") is None
