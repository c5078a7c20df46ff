"""Configuration management for pycfpages.

Values are read from environment variables first and fall back to a
``KEY=value`` file at ``~/.config/pycfpages/config``.
"""

import os
from pathlib import Path
from typing import Optional

from .utils import DEFAULT_API_URL

API_TOKEN_ENV = "CF_API_TOKEN"
ACCOUNT_ID_ENV = "CF_ACCOUNT_ID"
API_URL_ENV = "CF_API_URL"


class Config:
    """Resolves API credentials and endpoint settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pycfpages
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pycfpages"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.is_file():
            return {}

        values: dict[str, str] = {}
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            values[key.strip()] = value.strip().strip("\"'")
        return values

    def _get(self, key: str) -> Optional[str]:
        value = os.environ.get(key)
        if value:
            return value
        return self._read_file().get(key) or None

    @property
    def api_token(self) -> Optional[str]:
        """API token used to request upload tokens and create deployments."""
        return self._get(API_TOKEN_ENV)

    @property
    def account_id(self) -> Optional[str]:
        return self._get(ACCOUNT_ID_ENV)

    @property
    def api_url(self) -> str:
        return self._get(API_URL_ENV) or DEFAULT_API_URL

    def is_configured(self) -> bool:
        """Check whether both the API token and the account ID are known."""
        return bool(self.api_token and self.account_id)

    def save_credentials(self, api_token: str, account_id: str) -> None:
        """Store credentials in the config file.

        Existing keys other than the credentials are preserved.

        Args:
            api_token: Cloudflare API token
            account_id: Cloudflare account ID
        """
        values = self._read_file()
        values[API_TOKEN_ENV] = api_token
        values[ACCOUNT_ID_ENV] = account_id

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        path.write_text(
            "".join(f"{key}={value}\n" for key, value in values.items()),
            encoding="utf-8",
        )
        path.chmod(0o600)


config = Config()
