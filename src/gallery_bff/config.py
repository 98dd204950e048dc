# src/gallery_bff/config.py

from pydantic import field_validator, AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Any
from pathlib import Path
from dotenv import load_dotenv

# .env is at the project root, two levels up from src/gallery_bff/
CONFIG_FILE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = CONFIG_FILE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    print(f"GalleryBFF: Successfully loaded .env file from: {ENV_FILE_PATH}")
else:
    print(
        f"GalleryBFF: Warning: .env file not found at {ENV_FILE_PATH}. Relying on environment variables."
    )


class Settings(BaseSettings):
    # === Dropbox App Details ===
    DBX_APP_KEY: str
    DBX_APP_SECRET: str
    OAUTH_REDIRECT_URL: AnyHttpUrl

    # === Dropbox Endpoints ===
    DBX_API_DOMAIN: str = "https://api.dropboxapi.com"
    DBX_OAUTH_DOMAIN: str = "https://www.dropbox.com"
    DBX_OAUTH_PATH: str = "/oauth2/authorize"
    DBX_TOKEN_PATH: str = "/oauth2/token"
    DBX_TOKEN_REVOKE_PATH: str = "/2/auth/token/revoke"
    DBX_LIST_FOLDER_PATH: str = "/2/files/list_folder"
    DBX_GET_TEMPORARY_LINK_PATH: str = "/2/files/get_temporary_link"

    # Folder to list, "" is the root of the app folder
    DBX_IMAGE_FOLDER: str = ""

    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    # === Session Management ===
    APP_ENV: str = "development"
    SESSION_COOKIE_NAME: str = "session_id"
    SESSION_COOKIE_MAX_AGE: int = 60 * 60 * 4  # 4 hours
    REDIS_URL: Optional[str] = None

    # === CSRF State ===
    STATE_TTL_SECONDS: int = 600
    STATE_CACHE_MAX_ENTRIES: int = 10000

    # === Derived URLs ===
    @property
    def authorize_url(self) -> str:
        return f"{self.DBX_OAUTH_DOMAIN}{self.DBX_OAUTH_PATH}"

    @property
    def token_url(self) -> str:
        return f"{self.DBX_API_DOMAIN}{self.DBX_TOKEN_PATH}"

    @property
    def revoke_url(self) -> str:
        return f"{self.DBX_API_DOMAIN}{self.DBX_TOKEN_REVOKE_PATH}"

    @property
    def list_folder_url(self) -> str:
        return f"{self.DBX_API_DOMAIN}{self.DBX_LIST_FOLDER_PATH}"

    @property
    def temporary_link_url(self) -> str:
        return f"{self.DBX_API_DOMAIN}{self.DBX_GET_TEMPORARY_LINK_PATH}"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def session_cookie_secure(self) -> bool:
        # Secure cookies only when served behind HTTPS in production
        return self.is_production

    @property
    def show_error_detail(self) -> bool:
        # Error pages name the failure only in development; every other
        # environment (staging included) shows the generic page
        return self.APP_ENV == "development"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False
    )

    @field_validator("DBX_API_DOMAIN", "DBX_OAUTH_DOMAIN", mode='before')
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> Any:
        # Paths are joined with a leading slash
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("APP_ENV", mode='before')
    @classmethod
    def normalize_env(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


try:
    settings = Settings()
    print(f"Dropbox OAuth authorize URL: {settings.authorize_url}")
    print(f"OAuth Redirect URL: {settings.OAUTH_REDIRECT_URL}")
    print(f"Environment: {settings.APP_ENV}")

except Exception as e:
    print(f"GalleryBFF: Error instantiating Settings: {e}")
    import traceback
    traceback.print_exc()
    raise
