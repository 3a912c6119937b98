"""
Service-account token source for the Google Analytics API.

Token exchange, caching and expiry are handled by google-auth; this wrapper
serializes refreshes and runs them off the event loop.
"""

import asyncio
from typing import Any, Callable, Mapping, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from shared.errors import AuthenticationError, CredentialsError
from shared.logging import get_logger


ANALYTICS_READONLY_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"


class ServiceAccountTokenSource:
    """Issues and caches access tokens for a Google service account."""

    def __init__(
        self,
        credentials: Mapping[str, str],
        scope: str = ANALYTICS_READONLY_SCOPE,
        request: Optional[Callable[..., Any]] = None,
    ):
        try:
            self.credentials = service_account.Credentials.from_service_account_info(
                dict(credentials), scopes=[scope]
            )
        except (ValueError, KeyError) as e:
            raise CredentialsError(f"Invalid service account key: {e}") from e

        self.scope = scope
        self.request = request or Request()
        self.logger = get_logger("ga_exporter.credentials")
        self._lock = asyncio.Lock()

    @property
    def email(self) -> str:
        return self.credentials.service_account_email

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it when needed."""
        async with self._lock:
            if not self.credentials.valid:
                await asyncio.to_thread(self._refresh)
            return self.credentials.token

    def invalidate(self) -> None:
        """Forget the cached token so the next call refreshes it."""
        self.credentials.token = None

    def _refresh(self) -> None:
        try:
            self.credentials.refresh(self.request)
        except GoogleAuthError as e:
            self.logger.error("Token refresh failed", error=str(e))
            raise AuthenticationError(f"Token refresh failed: {e}") from e

        self.logger.debug("Access token refreshed", expiry=str(self.credentials.expiry))
