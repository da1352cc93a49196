"""Bearer credential holder with lock-protected refresh."""

import threading
import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from common.constants import API_REFRESH_TOKEN, REFERER, USER_AGENT
from common.logging_config import get_logger
from drive.exceptions import AuthExpiredError, ProtocolError, TransportError
from drive.models import TokenResponse

logger = get_logger(__name__)

# Refresh slightly before the server-side expiry to avoid racing it.
EXPIRY_SKEW_SECONDS = 60


class CredentialHolder:
    """
    Owns the access token, its expiry and the refresh token.

    A single holder is shared by reference between every request path of a
    DriveClient. All reads and refreshes go through one lock so concurrent
    callers never refresh twice for the same stale token.
    """

    def __init__(
        self,
        refresh_token: str,
        on_refresh: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize credential holder.

        Args:
            refresh_token: Long-lived refresh token
            on_refresh: Called with the new refresh token after each refresh
            clock: Time source in seconds
        """
        self._lock = threading.Lock()
        self._refresh_token = refresh_token
        self._access_token = ""
        self._expire_at = 0.0
        self._on_refresh = on_refresh
        self._clock = clock

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    @property
    def refresh_token(self) -> str:
        with self._lock:
            return self._refresh_token

    def is_expired(self) -> bool:
        with self._lock:
            return not self._access_token or self._expire_at - EXPIRY_SKEW_SECONDS <= self._clock()

    def set_access_token(self, access_token: str, expires_in: int) -> None:
        """Install an access token obtained elsewhere."""
        with self._lock:
            self._access_token = access_token
            self._expire_at = self._clock() + expires_in

    def refresh(self, session: httpx.Client, stale_token: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """
        Exchange the refresh token for a new access token.

        Args:
            session: HTTP client used for the token request
            stale_token: Access token the caller saw rejected; if another
                thread already replaced it, no request is made
            timeout: Optional request timeout in seconds

        Returns:
            The current access token

        Raises:
            AuthExpiredError: If the refresh token is missing or rejected
            TransportError: If the token endpoint is unreachable
        """
        with self._lock:
            if stale_token is not None and self._access_token and self._access_token != stale_token:
                logger.debug("Access token already refreshed by another caller")
                return self._access_token

            if not self._refresh_token:
                raise AuthExpiredError("no refresh token configured, please login first")

            logger.info("Refreshing access token")
            try:
                response = session.post(
                    API_REFRESH_TOKEN,
                    json={'refresh_token': self._refresh_token, 'grant_type': 'refresh_token'},
                    headers={'Referer': REFERER, 'User-Agent': USER_AGENT},
                    timeout=timeout,
                )
            except httpx.TransportError as e:
                raise TransportError(f"failed to refresh access token: {e}") from e

            if response.status_code >= 400:
                logger.warning(f"Token refresh rejected [status={response.status_code}]")
                raise AuthExpiredError(
                    f'failed to refresh access token, got "{response.status_code}"',
                    status_code=response.status_code,
                )

            try:
                token = TokenResponse.model_validate(response.json())
            except (ValueError, ValidationError) as e:
                raise ProtocolError(f"failed to parse token response: {e}") from e

            self._access_token = token.access_token
            self._refresh_token = token.refresh_token
            self._expire_at = self._clock() + token.expires_in
            new_refresh_token = token.refresh_token

        logger.info(f"Access token refreshed [expires_in={token.expires_in}s]")
        if self._on_refresh is not None:
            self._on_refresh(new_refresh_token)
        return token.access_token
