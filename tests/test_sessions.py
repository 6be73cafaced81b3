import asyncio

import pytest

import auth
from database import create_tables, make_database


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_password_hashing():
    hashed = auth.get_password_hash("maxwil2024")
    assert "." in hashed
    assert hashed != auth.get_password_hash("maxwil2024")
    assert auth.verify_password("maxwil2024", hashed)
    assert not auth.verify_password("wrong", hashed)
    assert not auth.verify_password("maxwil2024", "no-salt")
    assert not auth.verify_password("maxwil2024", "")


def test_security_code_matches():
    assert auth.security_code_matches("BAKERY123", "BAKERY123")
    assert not auth.security_code_matches("bakery123", "BAKERY123")
    assert not auth.security_code_matches(None, "BAKERY123")
    assert not auth.security_code_matches("", "BAKERY123")


def test_public_user_drops_secrets():
    user = {"id": 1, "username": "admin", "role": "admin", "password": "x.y", "security_code": "BAKERY123"}
    assert auth.public_user(user) == {"id": 1, "username": "admin", "role": "admin"}


def test_signed_session_cookie():
    token = auth.sign_session_id("abc", "secret", 60)
    assert auth.unsign_session_id(token, "secret") == "abc"
    assert auth.unsign_session_id(token, "other-secret") is None
    assert auth.unsign_session_id("garbage", "secret") is None

    expired = auth.sign_session_id("abc", "secret", -60)
    assert auth.unsign_session_id(expired, "secret") is None


def test_memory_session_store_expiry():
    clock = FakeClock()
    store = auth.MemorySessionStore(max_age=100, sweep_interval=1000, clock=clock)

    async def scenario():
        sid = await store.create(7)
        assert await store.get_user_id(sid) == 7
        assert await store.get_user_id("unknown") is None

        clock.now += 101
        assert await store.get_user_id(sid) is None
        assert len(store) == 0

    asyncio.run(scenario())


def test_memory_session_store_sweeps_dead_sessions():
    clock = FakeClock()
    store = auth.MemorySessionStore(max_age=100, sweep_interval=500, clock=clock)

    async def scenario():
        for user_id in range(3):
            await store.create(user_id)
        assert len(store) == 3

        clock.now += 600
        fresh = await store.create(9)
        assert len(store) == 1
        assert await store.get_user_id(fresh) == 9

    asyncio.run(scenario())


def test_memory_session_destroy():
    store = auth.MemorySessionStore(max_age=100)

    async def scenario():
        sid = await store.create(1)
        await store.destroy(sid)
        await store.destroy(sid)
        assert await store.get_user_id(sid) is None

    asyncio.run(scenario())


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'sessions.db'}"
    create_tables(url)
    return url


def test_database_session_store(database_url):
    async def scenario():
        database = make_database(database_url)
        await database.connect()
        try:
            store = auth.DatabaseSessionStore(database, max_age=100)
            sid = await store.create(3)
            assert await store.get_user_id(sid) == 3

            await store.destroy(sid)
            assert await store.get_user_id(sid) is None

            expired_store = auth.DatabaseSessionStore(database, max_age=-100)
            stale = await expired_store.create(4)
            assert await store.get_user_id(stale) is None

            stale = await expired_store.create(5)
            await store.sweep()
            assert await database.fetch_val("SELECT COUNT(*) FROM sessions") == 0
        finally:
            await database.disconnect()

    asyncio.run(scenario())
