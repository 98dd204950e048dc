# src/gallery_bff/state_cache.py
"""
Short-lived CSRF state storage for the OAuth login flow.

Each state token maps to the session identifier that started the login. The
callback is accepted only if it carries a state that is still cached and was
issued to the same session. Entries expire after a fixed window whether or
not they are ever read.
"""

import secrets
import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

from .errors import StateCacheFullError

DEFAULT_STATE_TTL_SECONDS = 600
DEFAULT_MAX_ENTRIES = 10000


class StateCache:
    """
    Process-wide state store. Built once at startup and handed to the flow
    controller; swap it for a distributed implementation with the same two
    methods when running more than one instance.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_STATE_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def issue(self, session_id: str) -> str:
        """
        Create a fresh state token bound to `session_id`. Raises
        StateCacheFullError rather than dropping a pending state early.
        """
        state = secrets.token_hex(16)
        with self._lock:
            self._cache.expire()
            if len(self._cache) >= self._cache.maxsize:
                print(f"STATE_CACHE: full ({self._cache.maxsize} pending states), refusing new login")
                raise StateCacheFullError()
            self._cache[state] = session_id
        print(f"STATE_CACHE: issued state {state[:8]}... (ttl {self.ttl_seconds}s)")
        return state

    def validate(self, state: Optional[str], session_id: str) -> bool:
        # Lookup only, reading an entry does not extend its TTL
        if not state:
            return False
        with self._lock:
            owner = self._cache.get(state)
        return owner is not None and owner == session_id

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
