"""Upload token handling for Cloudflare Pages asset endpoints."""

from __future__ import annotations

import base64
import json
import logging
import threading
import time
from typing import Callable, Optional

from .exceptions import PagesAuthenticationError
from .utils import TOKEN_EXPIRY_MARGIN

logger = logging.getLogger(__name__)


def decode_token_expiry(token: str) -> int:
    """Extract the ``exp`` claim from a signed upload token.

    The token is three dot-separated segments; the middle one is the
    base64 encoded JSON claims set.

    Args:
        token: Upload token (JWT)

    Returns:
        Expiry as seconds since the epoch

    Raises:
        PagesAuthenticationError: If the token cannot be decoded
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise PagesAuthenticationError("Malformed upload token")

    # Accept both alphabets and missing padding
    payload = segments[1].replace("+", "-").replace("/", "_")
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
        return int(claims["exp"])
    except (ValueError, TypeError, KeyError) as e:
        raise PagesAuthenticationError(f"Could not decode upload token: {e}") from e


class TokenCache:
    """Caches the short-lived upload token and refreshes it before expiry.

    The cache lives for a single deployment. ``get`` fetches a new token
    when none is cached or when the cached one has reached its expiry,
    which is set ``TOKEN_EXPIRY_MARGIN`` seconds before the real one.

    Examples:
        >>> tokens = TokenCache(client.get_upload_token)
        >>> headers = {"Authorization": f"Bearer {tokens.get()}"}
    """

    def __init__(self, fetch_token: Callable[[], str]):
        """Initialize the cache.

        Args:
            fetch_token: Callable returning a fresh upload token
        """
        self._fetch_token = fetch_token
        self._token: Optional[str] = None
        self._expiry: float = 0.0
        self._lock = threading.Lock()

    @property
    def expiry(self) -> float:
        """Time (seconds since the epoch) at which the cached token is stale."""
        return self._expiry

    def is_valid(self) -> bool:
        return self._token is not None and self._expiry > time.time()

    def get(self) -> str:
        """Return a valid upload token, fetching one if needed.

        The lock only guards reading and storing the cached token. The
        fetch runs outside it, so concurrent callers that all see a stale
        token may each fetch one; the last stored token wins.
        """
        with self._lock:
            if self.is_valid():
                return self._token  # type: ignore[return-value]

        token = self._fetch_token()
        expiry = float(decode_token_expiry(token) - TOKEN_EXPIRY_MARGIN)

        with self._lock:
            self._token = token
            self._expiry = expiry
        logger.debug(f"Fetched upload token valid until {expiry:.0f}")
        return token
