"""Shared fixtures for pycfpages tests."""

import base64
import json
import time

import pytest


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


@pytest.fixture
def make_token():
    """Build an unsigned JWT-shaped upload token with the given expiry."""

    def _make(exp=None, **claims):
        if exp is None:
            exp = int(time.time()) + 3600
        header = _b64url(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
        payload = _b64url(json.dumps({"exp": exp, **claims}).encode())
        return f"{header}.{payload}.signature"

    return _make
