import os

# Settings are read at import time, set them before any gallery_bff import
os.environ.setdefault("DBX_APP_KEY", "test-app-key")
os.environ.setdefault("DBX_APP_SECRET", "test-app-secret")
os.environ.setdefault("OAUTH_REDIRECT_URL", "http://localhost:3000/oauthredirect")
os.environ.setdefault("DBX_API_DOMAIN", "https://api.dropboxapi.test")
os.environ.setdefault("DBX_OAUTH_DOMAIN", "https://www.dropbox.test")
os.environ.setdefault("APP_ENV", "development")
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from gallery_bff.auth_utils import DropboxOAuthClient  # noqa: E402
from gallery_bff.config import Settings  # noqa: E402
from gallery_bff.dropbox_files import DropboxFilesClient  # noqa: E402
from gallery_bff.main import create_app  # noqa: E402
from gallery_bff.session_store import InMemorySessionStore  # noqa: E402
from gallery_bff.sessions import SessionManager  # noqa: E402
from gallery_bff.state_cache import StateCache  # noqa: E402

from .utils import FakeClock  # noqa: E402


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state_cache(clock) -> StateCache:
    return StateCache(ttl_seconds=600, timer=clock)


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def session_manager(session_store) -> SessionManager:
    return SessionManager(session_store)


@pytest.fixture()
def oauth_client(settings) -> DropboxOAuthClient:
    return DropboxOAuthClient(settings)


@pytest.fixture()
def files_client(settings) -> DropboxFilesClient:
    return DropboxFilesClient(settings)


@pytest.fixture()
def app(settings, session_store, state_cache):
    return create_app(settings=settings, session_store=session_store, state_cache=state_cache)


@pytest.fixture()
def client(app):
    with TestClient(app, base_url="http://localhost:3000", follow_redirects=False) as test_client:
        yield test_client
