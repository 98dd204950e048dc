from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from gallery_bff.errors import SessionError
from gallery_bff.session_data import SessionData
from gallery_bff.session_store import RedisSessionStore
from gallery_bff.sessions import Session, SessionManager

from .utils import FailingStore


@pytest.mark.asyncio
async def test_first_request_creates_and_persists_session(session_manager, session_store):
    session = await session_manager.load_or_create(None)

    assert len(session.session_id) == 32
    assert session.access_token is None
    assert session.session_id in session_store


@pytest.mark.asyncio
async def test_unknown_cookie_gets_a_fresh_session(session_manager):
    session = await session_manager.load_or_create("forged-id")

    assert session.session_id != "forged-id"


@pytest.mark.asyncio
async def test_existing_session_is_loaded(session_manager, session_store):
    await session_store.save("known-id", SessionData(access_token="dbx-token"))

    session = await session_manager.load_or_create("known-id")

    assert session.session_id == "known-id"
    assert session.access_token == "dbx-token"


@pytest.mark.asyncio
async def test_regenerate_replaces_identifier_and_drops_old_entry(session_manager, session_store):
    session = await session_manager.load_or_create(None)
    old_id = session.session_id

    await session_manager.regenerate(session)

    assert session.session_id != old_id
    assert old_id not in session_store
    assert session.session_id in session_store


@pytest.mark.asyncio
async def test_attach_token_after_regenerate_never_touches_old_id(session_manager, session_store):
    session = await session_manager.load_or_create(None)
    old_id = session.session_id

    await session_manager.regenerate(session)
    session_manager.attach_token(session, "dbx-token")
    await session_manager.save(session)

    assert await session_store.load(old_id) is None
    assert (await session_store.load(session.session_id)).access_token == "dbx-token"


@pytest.mark.asyncio
async def test_regenerate_store_failure_raises_session_error():
    manager = SessionManager(FailingStore(fail_on="save"))
    session = Session("old-id", SessionData())

    with pytest.raises(SessionError):
        await manager.regenerate(session)

    assert session.session_id == "old-id"


@pytest.mark.asyncio
async def test_destroy_removes_entry(session_manager, session_store):
    session = await session_manager.load_or_create(None)
    session_manager.attach_token(session, "dbx-token")
    await session_manager.save(session)

    await session_manager.destroy(session)

    assert session.destroyed is True
    assert session.access_token is None
    assert session.session_id not in session_store


@pytest.mark.asyncio
async def test_destroy_store_failure_raises_session_error():
    manager = SessionManager(FailingStore(fail_on="delete"))
    session = Session("some-id", SessionData(access_token="dbx-token"))

    with pytest.raises(SessionError):
        await manager.destroy(session)

    assert session.destroyed is False


@pytest.mark.asyncio
async def test_redis_store_round_trips_json_with_ttl():
    redis_client = AsyncMock()
    store = RedisSessionStore(redis_client, ttl_seconds=3600)

    await store.save("abc", SessionData(access_token="dbx-token"))

    redis_client.set.assert_awaited_once_with("sessions:abc", '{"access_token":"dbx-token"}', ex=3600)

    redis_client.get.return_value = '{"access_token":"dbx-token"}'
    loaded = await store.load("abc")
    assert loaded.access_token == "dbx-token"
    redis_client.get.assert_awaited_with("sessions:abc")

    await store.delete("abc")
    redis_client.delete.assert_awaited_once_with("sessions:abc")


@pytest.mark.asyncio
async def test_redis_store_missing_or_unreadable_entry_loads_as_none():
    redis_client = AsyncMock()
    store = RedisSessionStore(redis_client, ttl_seconds=3600)

    redis_client.get.return_value = None
    assert await store.load("abc") is None

    redis_client.get.return_value = "{not json"
    assert await store.load("abc") is None


@pytest.mark.asyncio
async def test_redis_errors_surface_as_session_error():
    redis_client = AsyncMock()
    redis_client.delete.side_effect = RedisConnectionError("redis down")
    store = RedisSessionStore(redis_client, ttl_seconds=3600)

    with pytest.raises(SessionError):
        await store.delete("abc")
