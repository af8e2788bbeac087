"""Domain-specific exceptions for linear-tv."""


class EmptyCatalogError(Exception):
    """Raised when a timeline is requested over an empty video sequence."""


class NoCredentialsError(Exception):
    """Raised when no stored OAuth tokens are available for the profile."""


class OAuthError(Exception):
    """Token endpoint rejected a code exchange or refresh."""


class SubscriptionNotFoundError(Exception):
    """Raised when a subscription with the given channel id does not exist."""

    def __init__(self, channel_id: str) -> None:
        self.channel_id = channel_id
        super().__init__(f"Subscription for channel {channel_id} not found")


class YouTubeAPIError(Exception):
    """Non-success response from the YouTube Data API."""

    def __init__(self, endpoint: str, status_code: int, detail: str = "") -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"YouTube API {endpoint} returned {status_code}: {detail}")
