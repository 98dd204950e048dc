# src/gallery_bff/sessions.py

import secrets
import typing

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response as StarletteResponse

from .errors import GatewayError
from .session_data import SessionData
from .session_store import SessionStore


def generate_session_id() -> str:
    return secrets.token_hex(16)


class Session:
    """The session bound to the current request."""

    def __init__(self, session_id: str, data: SessionData):
        self.session_id = session_id
        self.data = data
        self.destroyed = False

    @property
    def access_token(self) -> typing.Optional[str]:
        return self.data.access_token


class SessionManager:
    """
    Owns the session lifecycle: creation on first request, regeneration after
    login and destruction on logout. Every operation that touches the store
    must be awaited before the session is used again.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    async def load_or_create(self, session_id: typing.Optional[str]) -> Session:
        if session_id:
            data = await self.store.load(session_id)
            if data is not None:
                return Session(session_id, data)
        session = Session(generate_session_id(), SessionData())
        await self.store.save(session.session_id, session.data)
        return session

    async def regenerate(self, session: Session) -> None:
        """
        Moves the user agent onto a brand new, empty session and drops the old
        one from the store, so the pre-login identifier can never be used
        to reach an authenticated session.
        """
        old_session_id = session.session_id
        new_session_id = generate_session_id()
        new_data = SessionData()
        await self.store.delete(old_session_id)
        await self.store.save(new_session_id, new_data)
        session.session_id = new_session_id
        session.data = new_data
        print(f"SESSIONS: regenerated session {old_session_id[:8]}... -> {new_session_id[:8]}...")

    def attach_token(self, session: Session, token: str) -> None:
        session.data.access_token = token

    async def save(self, session: Session) -> None:
        await self.store.save(session.session_id, session.data)

    async def destroy(self, session: Session) -> None:
        await self.store.delete(session.session_id)
        session.destroyed = True
        session.data = SessionData()
        print(f"SESSIONS: destroyed session {session.session_id[:8]}...")


class SessionMiddleware(BaseHTTPMiddleware):
    """Loads the session named by the cookie, persists it and re-issues the cookie."""

    def __init__(
        self,
        app,
        manager: SessionManager,
        cookie_name: str = "session_id",
        max_age: int = 60 * 60 * 4,
        secure: bool = False,
        error_renderer: typing.Optional[typing.Callable[[Request, int, str], StarletteResponse]] = None,
    ):
        super().__init__(app)
        self.error_renderer = error_renderer
        self.manager = manager
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure

    def _error_response(self, request: Request, exc: GatewayError) -> StarletteResponse:
        # Store failures happen outside the app's exception handlers
        print(f"SESSIONS: {type(exc).__name__} on {request.url.path}: {exc.message}")
        if self.error_renderer is None:
            return PlainTextResponse(exc.message, status_code=exc.status_code)
        return self.error_renderer(request, exc.status_code, exc.message)

    async def dispatch(self, request: Request, call_next):
        try:
            session = await self.manager.load_or_create(request.cookies.get(self.cookie_name))
        except GatewayError as e:
            return self._error_response(request, e)
        request.state.session = session
        response: StarletteResponse = await call_next(request)

        if session.destroyed:
            response.delete_cookie(self.cookie_name, path="/", secure=self.secure, httponly=True, samesite="lax")
            return response

        # The ID may have changed during the request (regeneration at login)
        try:
            await self.manager.save(session)
        except GatewayError as e:
            return self._error_response(request, e)
        response.set_cookie(
            self.cookie_name,
            session.session_id,
            max_age=self.max_age,
            path="/",
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )
        return response


def get_session(request: Request) -> Session:
    return request.state.session
