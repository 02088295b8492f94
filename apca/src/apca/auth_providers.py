"""
Authentication provider abstractions for the trading API.

These classes build the authentication headers for a request.  Keeping
auth out of the transport lets a caller switch between API key and OAuth
credentials without touching the HTTP code.
"""
from __future__ import annotations

from typing import Dict


class AuthProvider:
    """Abstract base class for authentication providers."""

    async def get_headers(self, method: str, path: str) -> Dict[str, str]:
        """Return headers for the given request.

        Subclasses must implement this method.
        """
        raise NotImplementedError


class HeaderAuthProvider(AuthProvider):
    """API key authentication: key id and secret sent as plain headers."""

    KEY_ID_HEADER = "APCA-API-KEY-ID"
    SECRET_KEY_HEADER = "APCA-API-SECRET-KEY"

    def __init__(self, key_id: str, secret_key: str) -> None:
        self.key_id = key_id
        self.secret_key = secret_key

    def __repr__(self) -> str:
        return f"HeaderAuthProvider(key_id={self.key_id!r})"

    async def get_headers(self, method: str, path: str) -> Dict[str, str]:
        return {
            self.KEY_ID_HEADER: self.key_id,
            self.SECRET_KEY_HEADER: self.secret_key,
        }


class BearerAuthProvider(AuthProvider):
    """OAuth authentication with an access token issued to a third-party app."""

    def __init__(self, access_token: str) -> None:
        self.access_token = access_token

    def __repr__(self) -> str:
        return "BearerAuthProvider(access_token=***)"

    async def get_headers(self, method: str, path: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}
