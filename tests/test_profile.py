import importlib

from sqlalchemy import select

from app.models import User
from app.services.cache import TaggedCache
from app.services.profile import profile_service
from app.services.rate_limit import RateLimiter
from app.services.s3 import s3_service

from tests.helpers import make_confession, make_user


async def read_user(db, user_id: int) -> User:
    return await db.scalar(select(User).where(User.id == user_id).execution_options(populate_existing=True))


async def test_bio_round_trip_at_limit(db):
    user = await make_user(db, "alice")
    bio = "b" * 500

    assert (await profile_service.update_profile(db, user.id, {"bio": bio}, user))["success"]
    assert (await read_user(db, user.id)).bio == bio

    rejected = await profile_service.update_profile(db, user.id, {"bio": "b" * 501}, user)
    assert rejected["code"] == "VALIDATION_ERROR"
    assert (await read_user(db, user.id)).bio == bio


async def test_only_self_edit(db):
    alice = await make_user(db, "alice")
    bob = await make_user(db, "bob")
    result = await profile_service.update_profile(db, alice.id, {"bio": "hacked"}, bob)
    assert result["code"] == "FORBIDDEN"
    assert (await profile_service.update_profile(db, alice.id, {"bio": "x"}, None))["code"] == "UNAUTHORIZED"


async def test_image_url_must_be_http(db):
    user = await make_user(db, "alice")
    for url in ("javascript:alert(1)", "data:image/png;base64,AAAA", "/relative.png", "ftp://x/y.png"):
        result = await profile_service.update_profile(db, user.id, {"image_url": url}, user)
        assert result["code"] == "VALIDATION_ERROR", url

    ok = await profile_service.update_profile(
        db, user.id, {"image_url": "https://cdn.example.com/a.png"}, user
    )
    assert ok["success"]
    assert (await read_user(db, user.id)).image == "https://cdn.example.com/a.png"


async def test_omitted_fields_are_kept_and_null_clears(db):
    user = await make_user(db, "alice", bio="hello", image="https://cdn.example.com/a.png")

    await profile_service.update_profile(db, user.id, {"bio": "new bio"}, user)
    stored = await read_user(db, user.id)
    assert (stored.bio, stored.image) == ("new bio", "https://cdn.example.com/a.png")

    await profile_service.update_profile(db, user.id, {"image_url": None}, user)
    stored = await read_user(db, user.id)
    assert (stored.bio, stored.image) == ("new bio", None)


async def test_delete_profile_image_is_best_effort(db, monkeypatch):
    deleted = []

    async def failing_delete(url):
        deleted.append(url)
        return False

    monkeypatch.setattr(s3_service, "delete_by_url", failing_delete)
    user = await make_user(db, "alice", image="https://cdn.example.com/a.png")

    assert (await profile_service.delete_profile_image(db, user))["success"]
    assert deleted == ["https://cdn.example.com/a.png"]
    assert (await read_user(db, user.id)).image is None

    again = await profile_service.delete_profile_image(db, user)
    assert again["code"] == "BUSINESS_RULE"


async def test_public_profile_is_cached_and_invalidated(db):
    user = await make_user(db, "alice", bio="first")

    profile = await profile_service.get_public_profile(db, "Alice")
    assert profile == {"id": user.id, "username": "alice", "bio": "first", "image": None}

    await profile_service.update_profile(db, user.id, {"bio": "second"}, user)
    assert (await profile_service.get_public_profile(db, "alice"))["bio"] == "second"
    assert await profile_service.get_public_profile(db, "nobody") is None


async def test_search_users(db):
    await make_user(db, "alice")
    await make_user(db, "alicia")
    await make_user(db, "malice", is_banned=True)
    await make_user(db, "bob")
    limiter = RateLimiter(20)

    result = await profile_service.search_users(db, "ALI", None, "203.0.113.5", limiter)
    assert [u["username"] for u in result["users"]] == ["alice", "alicia"]
    assert result["rate_limited"] is False

    short = await profile_service.search_users(db, "a", None, "203.0.113.5", limiter)
    assert short["users"] == []


async def test_search_limits_results_and_rate(db):
    for i in range(7):
        await make_user(db, f"user{i}")
    limiter = RateLimiter(2)

    first = await profile_service.search_users(db, "user", None, "203.0.113.5", limiter)
    assert len(first["users"]) == 5
    await profile_service.search_users(db, "user", None, "203.0.113.5", limiter)

    throttled = await profile_service.search_users(db, "user", None, "203.0.113.5", limiter)
    assert throttled == {"success": True, "users": [], "rate_limited": True}


async def test_expired_searches_do_not_pile_up(db, monkeypatch):
    class Clock:
        now = 0.0

        def __call__(self):
            return self.now

    clock = Clock()
    cache = TaggedCache(clock=clock)
    profile_module = importlib.import_module("app.services.profile.profile_service")
    monkeypatch.setattr(profile_module, "cache_service", cache)
    await make_user(db, "alice")
    limiter = RateLimiter(20)

    for i in range(50):
        await profile_service.search_users(db, f"q{i:02d}", None, "127.0.0.1", limiter)
    assert len(cache) == 50

    clock.now += 10_000
    for term in ("al", "li", "ce"):
        await profile_service.search_users(db, term, None, "127.0.0.1", limiter)
    assert len(cache) == 3


async def test_search_underscore_is_literal(db):
    await make_user(db, "a_b")
    await make_user(db, "axb")
    result = await profile_service.search_users(db, "a_", None, "127.0.0.1", RateLimiter(20))
    assert [u["username"] for u in result["users"]] == ["a_b"]


async def test_dashboard_counts(db):
    alice = await make_user(db, "alice")
    bob = await make_user(db, "bob")
    await make_confession(db, alice.id)
    await make_confession(db, alice.id, sender_id=bob.id)
    await make_confession(db, bob.id, sender_id=alice.id)

    stats = await profile_service.get_dashboard(db, alice)
    assert stats == {"success": True, "username": "alice", "received_count": 2, "sent_count": 1}
