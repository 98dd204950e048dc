# src/gallery_bff/auth_utils.py

from urllib.parse import urlencode

import httpx

from .config import Settings
from .errors import TokenExchangeError, TokenRevocationError


def _upstream_message(response: httpx.Response) -> str:
    """Best description Dropbox gave us for a failed call."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error_summary") or body.get("error") or body)
    return str(body)


class DropboxOAuthClient:
    """
    Talks to the Dropbox OAuth2 endpoints on behalf of the BFF:
    builds the authorize redirect, exchanges codes for tokens and revokes tokens.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.UPSTREAM_TIMEOUT_SECONDS)

    # --- OAuth Flow Functions ---

    def build_auth_url(self, state: str) -> str:
        """
        Builds the Dropbox authorization URL.
        The 'state' is issued by the state cache in the /login route.
        """
        redirect_uri = str(self.settings.OAUTH_REDIRECT_URL)
        query = urlencode({
            "response_type": "code",
            "client_id": self.settings.DBX_APP_KEY,
            "redirect_uri": redirect_uri,
            "state": state,
        })
        auth_url = f"{self.settings.authorize_url}?{query}"
        print(f"AUTH_UTILS: build_auth_url - Generated auth URL. State: {state[:8]}..., Redirect URI: {redirect_uri}")
        return auth_url

    async def exchange_code_for_token(self, code: str) -> str:
        """
        Trades an authorization code for an access token.
        Raises TokenExchangeError carrying Dropbox's message on any failure.
        """
        form = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.settings.DBX_APP_KEY,
            "client_secret": self.settings.DBX_APP_SECRET,
            "redirect_uri": str(self.settings.OAUTH_REDIRECT_URL),
        }
        async with self._client() as client:
            try:
                response = await client.post(self.settings.token_url, data=form)
                response.raise_for_status()
                token_result = response.json()
            except httpx.HTTPStatusError as e:
                message = _upstream_message(e.response)
                print(f"AUTH_UTILS: exchange_code_for_token - Dropbox returned {e.response.status_code}: {message}")
                raise TokenExchangeError(f"error getting token. {message}") from e
            except httpx.RequestError as e:
                print(f"AUTH_UTILS: exchange_code_for_token - Request error: {str(e)}")
                raise TokenExchangeError(f"error getting token. {str(e)}") from e
            except ValueError as e:
                print(f"AUTH_UTILS: exchange_code_for_token - Malformed token response: {str(e)}")
                raise TokenExchangeError("error getting token. Malformed response from Dropbox.") from e

        access_token = token_result.get("access_token") if isinstance(token_result, dict) else None
        if not access_token:
            print("AUTH_UTILS: exchange_code_for_token - Token response carried no access_token")
            raise TokenExchangeError("error getting token. No access token in response.")

        print(f"AUTH_UTILS: exchange_code_for_token - Token acquired for account: {token_result.get('account_id', 'N/A')}")
        return access_token

    async def revoke_token(self, token: str) -> None:
        """Revokes `token` at Dropbox. Raises TokenRevocationError on failure."""
        headers = {"Authorization": f"Bearer {token}"}
        async with self._client() as client:
            try:
                response = await client.post(self.settings.revoke_url, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                message = _upstream_message(e.response)
                print(f"AUTH_UTILS: revoke_token - Dropbox returned {e.response.status_code}: {message}")
                raise TokenRevocationError(f"error destroying token. {message}") from e
            except httpx.RequestError as e:
                print(f"AUTH_UTILS: revoke_token - Request error: {str(e)}")
                raise TokenRevocationError(f"error destroying token. {str(e)}") from e
        print("AUTH_UTILS: revoke_token - Token revoked.")
