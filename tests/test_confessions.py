import asyncio
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models import Confession, Role
from app.services.cache import cache_service, path_tag, profile_path
from app.services.confession import confession_service
from app.services.events import EventBus
from app.services.rate_limit import RateLimiter

from tests.helpers import make_confession, make_user

CLIENT_IP = "203.0.113.10"


async def pinned_count(db, receiver_id: int) -> int:
    return await db.scalar(
        select(func.count())
        .select_from(Confession)
        .where(Confession.receiver_id == receiver_id, Confession.is_pinned.is_(True))
    )


async def send(db, receiver_id, caller=None, content="you rock", is_anonymous=True, **kwargs):
    limiter = kwargs.pop("rate_limiter", RateLimiter(5))
    return await confession_service.send(
        db, content, receiver_id, is_anonymous, caller, kwargs.pop("ip", CLIENT_IP), limiter, **kwargs
    )


async def test_send_anonymous_visitor(db):
    receiver = await make_user(db, "alice")
    result = await send(db, receiver.id)

    assert result["success"] is True
    assert result["confession"]["sender_id"] is None
    assert result["confession"]["is_anonymous"] is True
    assert result["confession"]["receiver"]["username"] == "alice"


async def test_send_attributed_when_signed_in_and_not_anonymous(db):
    receiver = await make_user(db, "alice")
    sender = await make_user(db, "bob")

    result = await send(db, receiver.id, caller=sender, is_anonymous=False)
    assert result["confession"]["sender_id"] == sender.id
    assert result["confession"]["sender"]["username"] == "bob"
    assert result["confession"]["is_anonymous"] is False

    anonymous = await send(db, receiver.id, caller=sender, is_anonymous=True)
    assert anonymous["confession"]["sender_id"] is None


async def test_visitor_cannot_be_attributed(db):
    receiver = await make_user(db, "alice")
    result = await send(db, receiver.id, caller=None, is_anonymous=False)
    assert result["confession"]["sender_id"] is None
    assert result["confession"]["is_anonymous"] is True


async def test_send_validates_content(db):
    receiver = await make_user(db, "alice")

    assert (await send(db, receiver.id, content=""))["code"] == "VALIDATION_ERROR"
    assert (await send(db, receiver.id, content="   "))["code"] == "VALIDATION_ERROR"
    assert (await send(db, receiver.id, content="x" * 501))["code"] == "VALIDATION_ERROR"
    assert (await send(db, receiver.id, content="x" * 500))["success"] is True


async def test_send_to_missing_receiver(db):
    result = await send(db, 4242)
    assert result == {"error": "User not found.", "code": "NOT_FOUND"}


async def test_send_rate_limited_per_ip(db):
    receiver = await make_user(db, "alice")
    limiter = RateLimiter(5)

    for _ in range(5):
        assert (await send(db, receiver.id, rate_limiter=limiter))["success"] is True

    blocked = await send(db, receiver.id, rate_limiter=limiter)
    assert blocked["code"] == "RATE_LIMITED"
    assert blocked["error"].startswith("You are doing that too much. Wait ")

    other_ip = await send(db, receiver.id, rate_limiter=limiter, ip="203.0.113.99")
    assert other_ip["success"] is True


async def test_loopback_is_not_rate_limited(db):
    receiver = await make_user(db, "alice")
    limiter = RateLimiter(1)
    for _ in range(3):
        assert (await send(db, receiver.id, rate_limiter=limiter, ip="127.0.0.1"))["success"]


async def test_send_publishes_and_invalidates(db):
    receiver = await make_user(db, "alice")
    bus = EventBus()
    received = []
    bus.subscribe(receiver.id, received.append)
    cache_service.set("profile:alice", {"stale": True}, tags=(path_tag(profile_path("alice")),))

    result = await send(db, receiver.id, event_bus=bus)

    assert received == [result["confession"]]
    assert cache_service.get("profile:alice") == (False, None)


async def test_fetch_page_orders_pinned_first(db):
    receiver = await make_user(db, "alice")
    base = datetime.utcnow() - timedelta(hours=1)
    oldest_pinned = await make_confession(db, receiver.id, "a", is_pinned=True, created_at=base)
    middle = await make_confession(db, receiver.id, "b", created_at=base + timedelta(minutes=1))
    newest = await make_confession(db, receiver.id, "c", created_at=base + timedelta(minutes=2))

    page = await confession_service.fetch_page(db, receiver.id, 0)
    assert [c["id"] for c in page] == [str(oldest_pinned), str(newest), str(middle)]

    second = await confession_service.fetch_page(db, receiver.id, 2, page_size=2)
    assert [c["id"] for c in second] == [str(middle)]


async def test_fetch_page_default_size(db):
    receiver = await make_user(db, "alice")
    for i in range(15):
        await make_confession(db, receiver.id, f"msg {i}")
    assert len(await confession_service.fetch_page(db, receiver.id, 0)) == 12
    assert len(await confession_service.fetch_page(db, receiver.id, 12)) == 3


async def test_fetch_page_returns_empty_when_database_fails():
    class UnreachableSession:
        async def execute(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

    assert await confession_service.fetch_page(UnreachableSession(), 1, 0) == []


async def test_delete_permissions(db):
    receiver = await make_user(db, "alice")
    stranger = await make_user(db, "bob")
    admin = await make_user(db, "mod", Role.ADMIN)
    first = await make_confession(db, receiver.id)
    second = await make_confession(db, receiver.id)

    assert (await confession_service.delete(db, first, None))["code"] == "UNAUTHORIZED"
    assert (await confession_service.delete(db, first, stranger))["code"] == "FORBIDDEN"
    assert (await confession_service.delete(db, first, receiver))["success"] is True
    assert (await confession_service.delete(db, second, admin))["success"] is True
    assert (await confession_service.delete(db, second, admin))["code"] == "NOT_FOUND"


async def test_reply_only_by_receiver(db):
    receiver = await make_user(db, "alice")
    sender = await make_user(db, "bob")
    admin = await make_user(db, "mod", Role.ADMIN)
    confession_id = await make_confession(db, receiver.id, sender_id=sender.id)

    assert (await confession_service.reply(db, confession_id, "hi", sender))["code"] == "FORBIDDEN"
    assert (await confession_service.reply(db, confession_id, "hi", admin))["code"] == "FORBIDDEN"
    assert (await confession_service.reply(db, confession_id, "", receiver))["code"] == "VALIDATION_ERROR"

    assert (await confession_service.reply(db, confession_id, "first", receiver))["success"]
    assert (await confession_service.reply(db, confession_id, "second", receiver))["success"]

    page = await confession_service.fetch_page(db, receiver.id, 0)
    assert page[0]["reply"] == "second"
    assert page[0]["reply_at"] is not None


async def test_pin_cap_of_three(db):
    receiver = await make_user(db, "alice")
    ids = [await make_confession(db, receiver.id, f"m{i}") for i in range(4)]

    for confession_id in ids[:3]:
        result = await confession_service.toggle_pin(db, confession_id, receiver)
        assert result == {"success": True, "is_pinned": True}

    rejected = await confession_service.toggle_pin(db, ids[3], receiver)
    assert rejected["code"] == "BUSINESS_RULE"
    assert await pinned_count(db, receiver.id) == 3

    assert await confession_service.toggle_pin(db, ids[0], receiver) == {"success": True, "is_pinned": False}
    assert (await confession_service.toggle_pin(db, ids[3], receiver))["is_pinned"] is True


async def test_moderators_are_not_held_to_pin_cap(db):
    receiver = await make_user(db, "alice")
    owner = await make_user(db, "boss", Role.OWNER)
    for i in range(3):
        await make_confession(db, receiver.id, f"p{i}", is_pinned=True)
    extra = await make_confession(db, receiver.id, "extra")

    assert await confession_service.toggle_pin(db, extra, owner) == {"success": True, "is_pinned": True}
    assert await pinned_count(db, receiver.id) == 4


async def test_pin_requires_receiver_or_moderator(db):
    receiver = await make_user(db, "alice")
    stranger = await make_user(db, "bob")
    confession_id = await make_confession(db, receiver.id)
    assert (await confession_service.toggle_pin(db, confession_id, stranger))["code"] == "FORBIDDEN"


async def test_parallel_pins_never_exceed_cap(locking_session_factory):
    async with locking_session_factory() as db:
        receiver = await make_user(db, "alice")
        ids = [await make_confession(db, receiver.id, f"m{i}") for i in range(6)]

    async def pin(confession_id):
        async with locking_session_factory() as session:
            return await confession_service.toggle_pin(session, confession_id, receiver)

    results = await asyncio.gather(*(pin(confession_id) for confession_id in ids))

    assert sum(1 for r in results if r.get("success")) == 3
    assert sum(1 for r in results if r.get("code") == "BUSINESS_RULE") == 3
    async with locking_session_factory() as db:
        assert await pinned_count(db, receiver.id) == 3


async def test_edit_window(db):
    receiver = await make_user(db, "alice")
    sender = await make_user(db, "bob")
    created = datetime(2026, 1, 1, 12, 0, 0)
    confession_id = await make_confession(db, receiver.id, sender_id=sender.id, created_at=created)

    on_time = await confession_service.edit(
        db, confession_id, "fixed typo", sender, now=created + timedelta(seconds=299)
    )
    assert on_time["success"] is True

    too_late = await confession_service.edit(
        db, confession_id, "again", sender, now=created + timedelta(seconds=301)
    )
    assert too_late["code"] == "BUSINESS_RULE"
    assert "Edit window expired" in too_late["error"]

    page = await confession_service.fetch_page(db, receiver.id, 0)
    assert page[0]["content"] == "fixed typo"
    assert page[0]["edited_at"] is not None


async def test_edit_only_by_named_sender(db):
    receiver = await make_user(db, "alice")
    sender = await make_user(db, "bob")
    anonymous_id = await make_confession(db, receiver.id)
    attributed_id = await make_confession(db, receiver.id, sender_id=sender.id)

    assert (await confession_service.edit(db, anonymous_id, "x", receiver))["code"] == "FORBIDDEN"
    assert (await confession_service.edit(db, attributed_id, "x", receiver))["code"] == "FORBIDDEN"
    assert (await confession_service.edit(db, attributed_id, "", sender))["code"] == "VALIDATION_ERROR"
    assert (await confession_service.edit(db, attributed_id, "x", sender))["success"] is True


async def test_sent_and_pinned_listings(db):
    receiver = await make_user(db, "alice")
    sender = await make_user(db, "bob")
    await make_confession(db, receiver.id, "named", sender_id=sender.id)
    await make_confession(db, receiver.id, "anon")
    await make_confession(db, receiver.id, "pinned", is_pinned=True)

    sent = await confession_service.list_sent(db, sender)
    assert [c["content"] for c in sent["confessions"]] == ["named"]

    pinned = await confession_service.list_pinned(db, receiver)
    assert [c["content"] for c in pinned["confessions"]] == ["pinned"]

    assert (await confession_service.list_sent(db, None))["code"] == "UNAUTHORIZED"
