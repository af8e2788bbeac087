"""OAuth token set as stored on the profile."""

import time

from pydantic import BaseModel


class TokenSet(BaseModel):
    """Google OAuth 2.0 credentials.

    ``expiry_date`` is epoch milliseconds, matching what Google client
    libraries persist, so existing profile documents load unchanged.
    """

    access_token: str
    refresh_token: str | None = None
    expiry_date: int | None = None
    scope: str | None = None
    token_type: str = "Bearer"

    def expires_within(self, seconds: int, *, now_ms: int | None = None) -> bool:
        """True if the token has no known expiry or expires in < *seconds*."""
        if self.expiry_date is None:
            return True
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return self.expiry_date - now_ms < seconds * 1000
