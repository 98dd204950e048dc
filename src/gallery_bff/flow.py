# src/gallery_bff/flow.py
"""
OAuth2 authorization-code flow for the gallery.

    Anonymous --login--> AwaitingCallback --callback--> Authenticated
    Authenticated --logout--> Anonymous

The callback checks the CSRF state against the *current* session before any
code is exchanged. A successful exchange moves the browser onto a freshly
regenerated session and only then stores the token on it.
"""

import typing

from .auth_utils import DropboxOAuthClient
from .errors import InvalidStateError, TokenRevocationError, UpstreamAuthError
from .sessions import Session, SessionManager
from .state_cache import StateCache


class AuthorizationFlow:
    def __init__(self, state_cache: StateCache, oauth_client: DropboxOAuthClient, session_manager: SessionManager):
        self.state_cache = state_cache
        self.oauth_client = oauth_client
        self.session_manager = session_manager

    def login(self, session: Session) -> str:
        """Returns the Dropbox authorize URL carrying a state bound to `session`."""
        state = self.state_cache.issue(session.session_id)
        print(f"FLOW: login - session {session.session_id[:8]}... awaiting callback")
        return self.oauth_client.build_auth_url(state)

    async def callback(
        self,
        session: Session,
        state: typing.Optional[str],
        code: typing.Optional[str] = None,
        error_description: typing.Optional[str] = None,
    ) -> None:
        if error_description:
            print(f"FLOW: callback - Dropbox reported an error: {error_description}")
            raise UpstreamAuthError(error_description)

        if not self.state_cache.validate(state, session.session_id):
            print(f"FLOW: callback - State mismatch or expired for session {session.session_id[:8]}...")
            raise InvalidStateError()

        if not code:
            print("FLOW: callback - Neither code nor error_description in callback.")
            raise UpstreamAuthError("Authorization response carried no code.")

        token = await self.oauth_client.exchange_code_for_token(code)

        await self.session_manager.regenerate(session)
        self.session_manager.attach_token(session, token)
        print(f"FLOW: callback - session {session.session_id[:8]}... authenticated")

    async def logout(self, session: Session) -> None:
        token = session.access_token
        if token:
            try:
                await self.oauth_client.revoke_token(token)
            except TokenRevocationError as e:
                # Local logout still goes ahead
                print(f"FLOW: logout - Revocation failed, continuing with local logout: {e.message}")
        await self.session_manager.destroy(session)
        print("FLOW: logout - session destroyed")
