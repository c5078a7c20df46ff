"""API client for Cloudflare Pages direct uploads."""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import TYPE_CHECKING, Any

import httpx

from .config import config
from .exceptions import (
    PagesAPIError,
    PagesAuthenticationError,
    PagesConfigError,
    PagesDeploymentError,
    PagesInvalidResponseError,
    PagesNetworkError,
    PagesUploadError,
)
from .models import ApiResponse, Deployment, LogCallback, MultipartForm
from .utils import (
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    RETRY_BACKOFF_EXPONENT,
    RETRY_MAX_DELAY,
    USER_AGENT,
)

if TYPE_CHECKING:
    from .auth import TokenCache

logger = logging.getLogger(__name__)


class PagesClient:
    """Client for the Cloudflare Pages direct upload API."""

    def __init__(
        self,
        project_name: str,
        api_token: str | None = None,
        account_id: str | None = None,
        api_url: str | None = None,
        retries: int = DEFAULT_RETRIES,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the Pages API client.

        Args:
            project_name: Name of the Pages project to deploy to
            api_token: Optional API token (uses config if not provided)
            account_id: Optional account ID (uses config if not provided)
            api_url: Optional API base URL (uses config if not provided)
            retries: Total number of attempts per request (default: 5)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for testing
        """
        self.project_name = project_name
        self.api_token = api_token or config.api_token
        self.account_id = account_id or config.account_id
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.retries = retries
        self.timeout = timeout
        self.transport = transport

        if not self.api_token:
            raise PagesConfigError(
                "API token not configured. "
                "Please set CF_API_TOKEN environment variable."
            )
        if not self.account_id:
            raise PagesConfigError(
                "Account ID not configured. "
                "Please set CF_ACCOUNT_ID environment variable."
            )
        if not self.project_name:
            raise PagesConfigError("Project name must not be empty.")
        if self.retries < 1:
            raise ValueError("retries must be at least 1")

        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def __enter__(self) -> PagesClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client shared by all worker threads."""
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                    transport=self.transport,
                )
            return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        with self._client_lock:
            if self._client is not None and not self._client.is_closed:
                self._client.close()
            self._client = None

    @property
    def project_path(self) -> str:
        return f"/accounts/{self.account_id}/pages/projects/{self.project_name}"

    # =========================
    # Request handling
    # =========================

    @staticmethod
    def _calculate_retry_delay(attempt: int) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Number of the attempt that just failed (1-based)

        Returns:
            Delay in seconds, growing as ``attempt ** 2.5`` and capped at 60
        """
        return float(min(attempt**RETRY_BACKOFF_EXPONENT, RETRY_MAX_DELAY))

    def _request(
        self,
        path: str,
        headers: dict[str, str] | None = None,
        body: str | MultipartForm | None = None,
    ) -> ApiResponse:
        """Make a single API request.

        The request is a POST when a body is given and a GET otherwise.
        A string body is sent as pre-serialized JSON; a MultipartForm is
        sent as ``multipart/form-data``.

        Args:
            path: API path, appended to the base URL
            headers: Extra headers, overriding the defaults
            body: Optional request body

        Returns:
            Decoded response envelope (successful or not)

        Raises:
            PagesNetworkError: If the request fails at the transport level
            PagesInvalidResponseError: If the response is not a JSON envelope
        """
        url = f"{self.api_url}{path}"
        request_headers = {
            "Authorization": f"Bearer {self.api_token}",
            "User-Agent": USER_AGENT,
            **(headers or {}),
        }

        kwargs: dict[str, Any] = {}
        if isinstance(body, str):
            request_headers["Content-Type"] = "application/json"
            kwargs["content"] = body
        elif body is not None:
            kwargs["files"] = body.parts

        method = "GET" if body is None else "POST"
        logger.debug(f"{method} {url}")

        try:
            response = self._get_client().request(
                method, url, headers=request_headers, **kwargs
            )
        except httpx.RequestError as e:
            raise PagesNetworkError(f"Network error: {e}") from e

        text = response.text
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            # The edge may answer with an HTML error page
            raise PagesInvalidResponseError(f"Expected JSON response, got: {text}")

        try:
            return ApiResponse.from_dict(json.loads(text))
        except ValueError as e:
            raise PagesInvalidResponseError(
                f"Invalid JSON response from server: {text}"
            ) from e

    def _request_with_retries(
        self,
        path: str,
        headers: dict[str, str] | None = None,
        body: str | MultipartForm | None = None,
        log: LogCallback | None = None,
    ) -> ApiResponse:
        """Make an API request, retrying failed attempts with backoff.

        Transport failures and non-JSON responses are retried. A decoded
        ``success: false`` envelope is returned as is.

        Args:
            path: API path
            headers: Extra headers
            body: Optional request body
            log: Optional callback receiving a message per failed attempt

        Returns:
            Decoded response envelope

        Raises:
            PagesNetworkError: If the last attempt failed at the transport level
            PagesInvalidResponseError: If the last attempt got a non-JSON answer
        """
        for attempt in range(1, self.retries + 1):
            try:
                return self._request(path, headers=headers, body=body)
            except (PagesNetworkError, PagesInvalidResponseError) as e:
                if attempt == self.retries:
                    message = f"Failed to request {path}, giving up: {e}"
                    logger.debug(message)
                    if log is not None:
                        log(message)
                    raise

                delay = self._calculate_retry_delay(attempt)
                message = (
                    f"Failed to request {path}, delaying for {delay * 1000:.0f} ms: {e}"
                )
                logger.debug(message)
                if log is not None:
                    log(message)
                time.sleep(delay)

        raise PagesNetworkError(f"No attempt made to request {path}")

    # =========================
    # Upload token
    # =========================

    def get_upload_token(self, log: LogCallback | None = None) -> str:
        """Request a short-lived token for the asset endpoints.

        Returns:
            Signed upload token (JWT)

        Raises:
            PagesAuthenticationError: If the API refuses to issue a token
        """
        response = self._request_with_retries(
            f"{self.project_path}/upload-token", log=log
        )
        if not response.success:
            raise PagesAuthenticationError(
                "Could not get upload token", response.errors
            )

        result = response.result
        jwt = result.get("jwt") if isinstance(result, dict) else None
        if not jwt or not isinstance(jwt, str):
            raise PagesAuthenticationError(f"No upload token in response: {result!r}")
        return jwt

    # =========================
    # Asset operations
    # =========================

    def _asset_headers(self, tokens: TokenCache) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens.get()}"}

    def check_missing(
        self,
        hashes: list[str],
        tokens: TokenCache,
        log: LogCallback | None = None,
    ) -> list[str]:
        """Ask which asset hashes are not stored remotely yet.

        Args:
            hashes: Distinct asset fingerprints
            tokens: Upload token cache
            log: Optional progress callback

        Returns:
            Subset of ``hashes`` that must be uploaded

        Raises:
            PagesAPIError: If the API reports a failure
        """
        response = self._request_with_retries(
            "/pages/assets/check-missing",
            headers=self._asset_headers(tokens),
            body=json.dumps({"hashes": hashes}),
            log=log,
        )
        if not response.success:
            raise PagesAPIError("Failed to check missing hashes", response.errors)
        return list(response.result or [])

    def upload_assets(
        self,
        assets: list[tuple[str, str, str]],
        tokens: TokenCache,
        log: LogCallback | None = None,
    ) -> None:
        """Upload asset blobs.

        Args:
            assets: List of ``(hash, content_base64, content_type)`` tuples
            tokens: Upload token cache
            log: Optional progress callback

        Raises:
            PagesUploadError: If the API rejects the upload
        """
        payload = [
            {
                "key": hash_value,
                "value": content_base64,
                "metadata": {"contentType": content_type},
                "base64": True,
            }
            for hash_value, content_base64, content_type in assets
        ]
        response = self._request_with_retries(
            "/pages/assets/upload",
            headers=self._asset_headers(tokens),
            body=json.dumps(payload),
            log=log,
        )
        if not response.success:
            raise PagesUploadError("Failed to upload assets", response.errors)

    def upload_asset(
        self,
        hash_value: str,
        content_base64: str,
        content_type: str,
        tokens: TokenCache,
        log: LogCallback | None = None,
    ) -> None:
        """Upload a single asset blob keyed by its fingerprint."""
        self.upload_assets([(hash_value, content_base64, content_type)], tokens, log)

    def upsert_hashes(
        self,
        hashes: list[str],
        tokens: TokenCache,
        log: LogCallback | None = None,
    ) -> None:
        """Mark the full set of asset hashes as present for the project.

        Raises:
            PagesAPIError: If the API reports a failure
        """
        response = self._request_with_retries(
            "/pages/assets/upsert-hashes",
            headers=self._asset_headers(tokens),
            body=json.dumps({"hashes": hashes}),
            log=log,
        )
        if not response.success:
            raise PagesAPIError("Failed to upsert hashes", response.errors)

    # =========================
    # Deployments
    # =========================

    def create_deployment(
        self,
        form: MultipartForm,
        log: LogCallback | None = None,
    ) -> Deployment:
        """Create a deployment from a manifest form.

        Args:
            form: Multipart form with the ``manifest`` field and optional
                branch, commit metadata and special files
            log: Optional progress callback

        Returns:
            Deployment with ``id`` and ``url`` set and no hashes

        Raises:
            PagesDeploymentError: If the API rejects the deployment
        """
        response = self._request_with_retries(
            f"{self.project_path}/deployments", body=form, log=log
        )
        if not response.success:
            raise PagesDeploymentError("Failed to create deployment", response.errors)

        result = response.result if isinstance(response.result, dict) else {}
        return Deployment(id=str(result.get("id", "")), url=str(result.get("url", "")))

