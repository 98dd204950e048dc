# src/gallery_bff/errors.py

from fastapi import status


class GatewayError(Exception):
    """
    Base class for every failure the gallery BFF reports to its error page.
    `status_code` is the HTTP status the error page is rendered with.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UpstreamAuthError(GatewayError):
    """Dropbox redirected back with an error instead of an authorization code."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Authorization was refused by Dropbox."


class InvalidStateError(GatewayError):
    """The callback state is unknown, expired, or bound to another session."""
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "session expired or invalid state"


class TokenExchangeError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "error getting token."


class TokenRevocationError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "error destroying token."


class SessionError(GatewayError):
    default_message = "error in session store."


class FolderListingError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "error listing folder."


class PartialFailureError(GatewayError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Error getting images from Dropbox"

    def __init__(self, failed: int, total: int, message: str = None):
        self.failed = failed
        self.total = total
        super().__init__(message or f"{self.default_message}: {failed} of {total} temporary links failed.")


class StateCacheFullError(GatewayError):
    """Too many logins pending at once; live states are never evicted to make room."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Too many pending logins, please try again in a few minutes."
