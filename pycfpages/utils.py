"""Utility functions for Cloudflare Pages direct uploads."""

import base64
import mimetypes
from pathlib import PurePosixPath

from blake3 import blake3

from . import __version__

# =============================================================================
# API constants
# =============================================================================

DEFAULT_API_URL: str = "https://api.cloudflare.com/client/v4"

USER_AGENT: str = f"pycfpages/{__version__}"

# Total number of attempts per request (first try included)
DEFAULT_RETRIES: int = 5

# Backoff delay is min(attempt ** 2.5, cap) seconds
RETRY_BACKOFF_EXPONENT: float = 2.5
RETRY_MAX_DELAY: float = 60.0

DEFAULT_TIMEOUT: float = 30.0

# Number of parallel asset uploads
DEFAULT_CONCURRENCY: int = 4

# Upload tokens are refreshed this many seconds before they expire
TOKEN_EXPIRY_MARGIN: int = 60

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# Length of a fingerprint in hex characters (128 bits)
HASH_LENGTH: int = 32

SPECIAL_FILES: tuple[str, ...] = ("_headers", "_redirects", "_worker.js")


# =============================================================================
# Hash calculation utilities
# =============================================================================


def get_extension(filename: str) -> str:
    """Return the extension of the file's base name without the leading dot.

    Examples:
        >>> get_extension("assets/app.min.js")
        'js'
        >>> get_extension("LICENSE")
        ''
        >>> get_extension("dir.d/.bashrc")
        ''
    """
    name = PurePosixPath(filename.replace("\\", "/")).name
    dot = name.rfind(".")
    # a leading dot marks a hidden file, not an extension
    if dot <= 0:
        return ""
    return name[dot + 1 :]


def compute_hash_b64(content_base64: str, filename: str) -> str:
    """Compute the asset fingerprint from already base64-encoded content.

    The fingerprint is the BLAKE3 digest of the base64 content followed by
    the file extension, hex-encoded and truncated to 32 characters. The
    extension is used exactly as given (no case folding).

    Args:
        content_base64: Base64 encoding of the file content
        filename: File name or deploy path; only the extension is used

    Returns:
        32 character lowercase hex fingerprint
    """
    data = (content_base64 + get_extension(filename)).encode("utf-8")
    return blake3(data).hexdigest()[:HASH_LENGTH]


def compute_hash(content: bytes, filename: str) -> str:
    """Compute the asset fingerprint for a file.

    Callers with very large files can precompute fingerprints with this
    function and pass them as ``DeploymentFile.hash``.

    Args:
        content: Raw file content
        filename: File name or deploy path; only the extension is used

    Returns:
        32 character lowercase hex fingerprint

    Examples:
        >>> compute_hash(b"A", "index.html") == compute_hash(b"A", "other.html")
        True
        >>> compute_hash(b"A", "index.html") == compute_hash(b"A", "index.css")
        False
    """
    return compute_hash_b64(encode_base64(content), filename)


def encode_base64(content: bytes) -> str:
    """Encode bytes as a standard base64 string."""
    return base64.b64encode(content).decode("ascii")


# =============================================================================
# MIME type utilities
# =============================================================================


def guess_content_type(filename: str) -> str:
    """Guess the MIME type of a file from its name.

    Args:
        filename: File name or deploy path

    Returns:
        MIME type string (defaults to 'application/octet-stream' if unknown)
    """
    mime_type, _ = mimetypes.guess_type(filename, strict=False)
    return mime_type or DEFAULT_CONTENT_TYPE
