"""Exceptions raised by the Cloudflare Pages direct upload client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ApiError


class PagesError(Exception):
    """Base exception for all pycfpages errors."""


class PagesConfigError(PagesError):
    """Raised when credentials or project settings are missing."""


class PagesNetworkError(PagesError):
    """Raised when a request fails at the transport level."""


class PagesInvalidResponseError(PagesError):
    """Raised when the API answers with something that is not a JSON envelope.

    The edge layer in front of the API may answer with an HTML error page,
    so the raw body is kept in the message.
    """


class PagesAPIError(PagesError):
    """Raised when the API returns a well-formed ``success: false`` envelope."""

    def __init__(self, message: str, errors: list[ApiError] | None = None):
        self.errors: list[ApiError] = list(errors or [])
        if self.errors:
            details = "; ".join(f"[{e.code}] {e.message}" for e in self.errors)
            message = f"{message}: {details}"
        super().__init__(message)


class PagesAuthenticationError(PagesAPIError):
    """Raised when an upload token cannot be obtained or decoded."""


class PagesUploadError(PagesAPIError):
    """Raised when an asset upload is rejected or cannot be prepared."""


class PagesDeploymentError(PagesAPIError):
    """Raised when the deployment itself is rejected."""
