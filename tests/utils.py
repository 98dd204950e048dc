from gallery_bff.errors import SessionError
from gallery_bff.session_store import InMemorySessionStore

API = "https://api.dropboxapi.test"
TOKEN_URL = f"{API}/oauth2/token"
REVOKE_URL = f"{API}/2/auth/token/revoke"
LIST_FOLDER_URL = f"{API}/2/files/list_folder"
TEMPORARY_LINK_URL = f"{API}/2/files/get_temporary_link"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore(InMemorySessionStore):
    """In-memory store whose save or delete always fails."""

    def __init__(self, fail_on: str):
        super().__init__()
        self.fail_on = fail_on

    async def save(self, session_id, data):
        if self.fail_on == "save":
            raise SessionError("error saving session.")
        await super().save(session_id, data)

    async def delete(self, session_id):
        if self.fail_on == "delete":
            raise SessionError("error deleting session.")
        await super().delete(session_id)
