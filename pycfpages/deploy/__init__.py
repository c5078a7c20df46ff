"""Deployment pipeline: directory scanning, asset upload and orchestration."""

from .engine import PagesDeployer
from .scanner import DirectoryScanner, LocalFile, ScanResult
from .scheduler import UploadScheduler

__all__ = [
    "PagesDeployer",
    "DirectoryScanner",
    "LocalFile",
    "ScanResult",
    "UploadScheduler",
]
