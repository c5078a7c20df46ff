"""Directory scanning for directory deployments."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..models import DeploymentFile
from ..utils import SPECIAL_FILES

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a local file to be deployed."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance
        """
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()
        return cls(path=file_path, relative_path=relative_path)

    def to_deployment_file(self) -> DeploymentFile:
        """Create a DeploymentFile that reads the content lazily."""
        return DeploymentFile(filename=self.relative_path, content=self.path.read_bytes)


@dataclass
class ScanResult:
    """Files found in a directory plus the special files at its root."""

    files: list[LocalFile] = field(default_factory=list)
    special_files: dict[str, Path] = field(default_factory=dict)
    """Maps ``_headers``, ``_redirects`` and ``_worker.js`` to their paths"""

    def read_special(self, name: str) -> Optional[str]:
        """Read a special file as UTF-8 text, if it was found."""
        path = self.special_files.get(name)
        if path is None:
            return None
        return path.read_text(encoding="utf-8")


class DirectoryScanner:
    """Scans a site directory and builds the list of files to deploy.

    ``_headers``, ``_redirects`` and ``_worker.js`` directly inside the
    root are configuration rather than assets and are reported separately.
    Files with those names in subdirectories are deployed as ordinary
    assets.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> result = scanner.scan(Path("dist"))
        >>> [f.relative_path for f in result.files]
        ['assets/app.js', 'index.html']
    """

    def scan(self, base_path: Path) -> ScanResult:
        """Scan a directory recursively.

        Args:
            base_path: Root directory of the site

        Returns:
            ScanResult with assets sorted by relative path

        Raises:
            ValueError: If the path does not exist or is not a directory
        """
        if not base_path.exists():
            raise ValueError(f"Directory does not exist: {base_path}")
        if not base_path.is_dir():
            raise ValueError(f"Path is not a directory: {base_path}")

        base_path = base_path.resolve()
        result = ScanResult()
        for local_file in self._scan_recursive(base_path, base_path):
            if local_file.relative_path in SPECIAL_FILES:
                logger.debug(f"Found special file {local_file.relative_path}")
                result.special_files.setdefault(
                    local_file.relative_path, local_file.path
                )
                continue
            result.files.append(local_file)

        logger.debug(f"Scanned {len(result.files)} file(s) in {base_path}")
        return result

    def _scan_recursive(self, path: Path, base_path: Path) -> list[LocalFile]:
        files: list[LocalFile] = []
        for item in sorted(path.iterdir()):
            if item.is_dir():
                files.extend(self._scan_recursive(item, base_path))
            elif item.is_file():
                files.append(LocalFile.from_path(item, base_path))
        return files
