# src/gallery_bff/main.py

import typing
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth_utils import DropboxOAuthClient
from .config import settings as default_settings, Settings, CONFIG_FILE_DIR
from .dropbox_files import DropboxFilesClient
from .errors import GatewayError
from .flow import AuthorizationFlow
from .session_store import SessionStore, InMemorySessionStore, RedisSessionStore
from .sessions import Session, SessionManager, SessionMiddleware, get_session
from .state_cache import StateCache

templates = Jinja2Templates(directory=CONFIG_FILE_DIR / "templates")


def build_session_store(settings: Settings) -> SessionStore:
    if settings.REDIS_URL:
        print("MAIN: Using Redis session store.")
        return RedisSessionStore.from_url(settings.REDIS_URL, ttl_seconds=settings.SESSION_COOKIE_MAX_AGE)
    print("MAIN: Using in-memory session store.")
    return InMemorySessionStore()


# --- Dependencies ---
def get_flow(request: Request) -> AuthorizationFlow:
    return request.app.state.flow


def get_files_client(request: Request) -> DropboxFilesClient:
    return request.app.state.files_client


def render_error(request: Request, status_code: int, message: str) -> HTMLResponse:
    settings: Settings = request.app.state.settings
    detail = message if settings.show_error_detail else None
    return templates.TemplateResponse(
        request,
        "error.html",
        {"status_code": status_code, "message": detail},
        status_code=status_code,
    )


def create_app(
        settings: typing.Optional[Settings] = None,
        session_store: typing.Optional[SessionStore] = None,
        state_cache: typing.Optional[StateCache] = None,
        oauth_client: typing.Optional[DropboxOAuthClient] = None,
        files_client: typing.Optional[DropboxFilesClient] = None,
) -> FastAPI:
    settings = settings or default_settings
    session_store = session_store or build_session_store(settings)
    state_cache = state_cache or StateCache(
        ttl_seconds=settings.STATE_TTL_SECONDS,
        max_entries=settings.STATE_CACHE_MAX_ENTRIES,
    )
    oauth_client = oauth_client or DropboxOAuthClient(settings)
    files_client = files_client or DropboxFilesClient(settings)
    session_manager = SessionManager(session_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print("--- Dropbox Gallery BFF (FastAPI) Starting Up ---")
        print(f"Dropbox App Key: {settings.DBX_APP_KEY}")
        print(f"OAuth Redirect URL: {settings.OAUTH_REDIRECT_URL}")
        print(f"Dropbox API Domain: {settings.DBX_API_DOMAIN}")
        print(f"Image folder: '{settings.DBX_IMAGE_FOLDER}'")
        print(f"Secure session cookie: {'Yes' if settings.session_cookie_secure else 'No'}")
        print("-------------------------------------------")
        yield
        await session_store.close()

    app = FastAPI(
        title="Dropbox Gallery BFF",
        description="Backend-For-Frontend that authorizes a Dropbox account and shows its images.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.state_cache = state_cache
    app.state.session_manager = session_manager
    app.state.files_client = files_client
    app.state.flow = AuthorizationFlow(state_cache, oauth_client, session_manager)

    app.add_middleware(
        SessionMiddleware,
        manager=session_manager,
        cookie_name=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_COOKIE_MAX_AGE,
        secure=settings.session_cookie_secure,
        error_renderer=render_error,
    )

    # --- Error Boundary ---
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        print(f"MAIN: {type(exc).__name__} on {request.url.path}: {exc.message}")
        return render_error(request, exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Not Found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return render_error(request, exc.status_code, message)

    # --- Routes ---
    @app.get("/", response_class=HTMLResponse)
    async def home(
            request: Request,
            session: Session = Depends(get_session),
            dropbox_files: DropboxFilesClient = Depends(get_files_client),
    ):
        token = session.access_token
        if not token:
            print("MAIN: / - No token in session. Redirecting to /login.")
            return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)

        links = await dropbox_files.get_links(token)
        if links:
            return templates.TemplateResponse(request, "gallery.html", {"imgs": links})
        # No images, ask the user to upload some
        return templates.TemplateResponse(request, "empty.html", {})

    @app.get("/login")
    async def login(
            session: Session = Depends(get_session),
            flow: AuthorizationFlow = Depends(get_flow),
    ):
        auth_url = flow.login(session)
        return RedirectResponse(url=auth_url, status_code=status.HTTP_302_FOUND)

    @app.get("/oauthredirect")
    async def oauth_redirect(
            state: typing.Optional[str] = None,
            code: typing.Optional[str] = None,
            error_description: typing.Optional[str] = None,
            session: Session = Depends(get_session),
            flow: AuthorizationFlow = Depends(get_flow),
    ):
        await flow.callback(session, state=state, code=code, error_description=error_description)
        return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)

    @app.get("/logout")
    async def logout(
            session: Session = Depends(get_session),
            flow: AuthorizationFlow = Depends(get_flow),
    ):
        await flow.logout(session)
        return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)

    return app


app = create_app()
