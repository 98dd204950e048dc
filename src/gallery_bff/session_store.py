# src/gallery_bff/session_store.py
"""
Key-value persistence for server-side sessions.

The BFF only needs three operations from its store: load, save and delete a
`SessionData` payload by session ID. Expiry of stored sessions is the store's
business. Any backend failure surfaces as `SessionError`.
"""

import typing

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError

from .errors import SessionError
from .session_data import SessionData


class SessionStore:
    async def load(self, session_id: str) -> typing.Optional[SessionData]:
        raise NotImplementedError

    async def save(self, session_id: str, data: SessionData) -> None:
        raise NotImplementedError

    async def delete(self, session_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        pass


class InMemorySessionStore(SessionStore):
    """Process-local store. Fine for development and a single worker."""

    def __init__(self):
        self._data: typing.Dict[str, str] = {}

    async def load(self, session_id: str) -> typing.Optional[SessionData]:
        raw = self._data.get(session_id)
        if raw is None:
            return None
        return SessionData.model_validate_json(raw)

    async def save(self, session_id: str, data: SessionData) -> None:
        self._data[session_id] = data.model_dump_json()

    async def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._data


class RedisSessionStore(SessionStore):
    """Shared store for multi-instance deployments. Entries expire with the cookie."""

    KEY_PREFIX = "sessions:"

    def __init__(self, client: aioredis.Redis, ttl_seconds: int):
        self._client = client
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "RedisSessionStore":
        return cls(aioredis.from_url(url, decode_responses=True), ttl_seconds)

    def _key(self, session_id: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}"

    async def load(self, session_id: str) -> typing.Optional[SessionData]:
        try:
            raw = await self._client.get(self._key(session_id))
        except RedisError as e:
            print(f"SESSIONS: Redis error loading session: {str(e)}")
            raise SessionError(f"error loading session. {str(e)}") from e
        if raw is None:
            return None
        try:
            return SessionData.model_validate_json(raw)
        except ValidationError:
            # Unreadable payload, treat it as no session at all
            print("SESSIONS: Discarding unreadable session payload.")
            return None

    async def save(self, session_id: str, data: SessionData) -> None:
        try:
            await self._client.set(self._key(session_id), data.model_dump_json(), ex=self._ttl_seconds)
        except RedisError as e:
            print(f"SESSIONS: Redis error saving session: {str(e)}")
            raise SessionError(f"error saving session. {str(e)}") from e

    async def delete(self, session_id: str) -> None:
        try:
            await self._client.delete(self._key(session_id))
        except RedisError as e:
            print(f"SESSIONS: Redis error deleting session: {str(e)}")
            raise SessionError(f"error deleting session. {str(e)}") from e

    async def close(self) -> None:
        await self._client.aclose()
