"""Data models for Cloudflare Pages direct uploads."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from .utils import DEFAULT_CONCURRENCY, encode_base64

ContentProducer = Callable[[], bytes]
LogCallback = Callable[[str], Any]


@dataclass
class ApiError:
    """A single error entry of an API response envelope."""

    code: int
    message: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiError:
        return cls(code=data.get("code", 0), message=str(data.get("message", "")))


@dataclass
class ApiResponse:
    """The ``{success, result, errors}`` envelope every endpoint returns."""

    success: bool
    result: Any = None
    errors: list[ApiError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ApiResponse:
        """Create an ApiResponse from decoded JSON.

        Args:
            data: Decoded JSON body

        Returns:
            ApiResponse instance

        Raises:
            ValueError: If the body is not an envelope object
        """
        if not isinstance(data, dict) or "success" not in data:
            raise ValueError(f"Not an API envelope: {data!r}")
        errors = [
            ApiError.from_dict(e)
            for e in data.get("errors") or []
            if isinstance(e, dict)
        ]
        return cls(
            success=bool(data["success"]),
            result=data.get("result"),
            errors=errors,
        )


@dataclass
class DeploymentFile:
    """A file to be deployed.

    ``content`` is either the raw bytes or a callable returning them, so
    large trees can be read lazily. The deployer writes the computed
    ``hash`` back into the record and caches the base64 encoding it
    produced while hashing.
    """

    filename: str
    """Deploy path relative to the site root, forward slash separated"""

    content: Union[bytes, str, ContentProducer]
    """File content or a callable producing it"""

    content_type: Optional[str] = None
    """MIME type override; guessed from the filename when unset"""

    hash: Optional[str] = None
    """Precomputed fingerprint (see ``compute_hash``)"""

    content_base64: Optional[str] = field(default=None, repr=False, compare=False)

    def read_bytes(self) -> bytes:
        """Materialize the file content."""
        content = self.content() if callable(self.content) else self.content
        if isinstance(content, str):
            return content.encode("utf-8")
        return content

    def get_base64(self) -> str:
        """Return the cached base64 content, encoding it if needed."""
        if self.content_base64 is not None:
            return self.content_base64
        return encode_base64(self.read_bytes())


@dataclass
class DeploymentOptions:
    """Options for a single deployment."""

    branch: Optional[str] = None
    commit_message: Optional[str] = None
    commit_hash: Optional[str] = None

    headers: Optional[str] = None
    """Content of the ``_headers`` file"""

    redirects: Optional[str] = None
    """Content of the ``_redirects`` file"""

    worker: Optional[str] = None
    """Content of the ``_worker.js`` file"""

    concurrency: int = DEFAULT_CONCURRENCY
    log: Optional[LogCallback] = None
    progress_callback: Optional[Callable[[int, int], None]] = None


@dataclass
class Deployment:
    """Result of a successful deployment."""

    id: str
    url: str
    hashes: dict[str, str] = field(default_factory=dict)
    """Mapping of filename to fingerprint for every deployed file"""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "hashes": dict(self.hashes)}


@dataclass
class MultipartForm:
    """Ordered multipart form body.

    Plain fields are sent without a filename; file parts carry one.
    """

    parts: list[tuple[str, tuple[Optional[str], bytes]]] = field(
        default_factory=list
    )

    def add_field(self, name: str, value: str) -> None:
        self.parts.append((name, (None, value.encode("utf-8"))))

    def add_file(
        self, name: str, content: str, filename: Optional[str] = None
    ) -> None:
        self.parts.append((name, (filename or name, content.encode("utf-8"))))

    def add_json(self, name: str, value: Any) -> None:
        self.add_field(name, json.dumps(value))

    def field_names(self) -> list[str]:
        return [name for name, _ in self.parts]
