# src/gallery_bff/session_data.py

from pydantic import BaseModel
from typing import Optional


class SessionData(BaseModel):
    """
    Represents the data stored server-side for a browser session.
    Only the session ID is stored in the browser cookie.
    """
    # Dropbox issues non-expiring tokens for this app, no expiry is tracked
    access_token: Optional[str] = None
