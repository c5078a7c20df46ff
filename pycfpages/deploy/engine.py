"""Deployment orchestration for Cloudflare Pages direct uploads."""

import dataclasses
import logging
from pathlib import Path
from typing import Optional, Union

from ..api import PagesClient
from ..auth import TokenCache
from ..models import Deployment, DeploymentFile, DeploymentOptions, MultipartForm
from ..utils import compute_hash_b64, encode_base64
from .scanner import DirectoryScanner
from .scheduler import UploadScheduler

logger = logging.getLogger(__name__)


class PagesDeployer:
    """Deploys a set of files to a Pages project.

    A deployment hashes every file, asks the API which hashes are missing,
    uploads only those, and then creates the deployment from a manifest
    mapping every deploy path to its hash. Any failure aborts the whole
    deployment.

    Examples:
        >>> client = PagesClient("my-site", api_token="...", account_id="...")
        >>> deployer = PagesDeployer(client)
        >>> deployment = deployer.deploy_directory(Path("dist"))
        >>> print(deployment.url)
    """

    def __init__(self, client: PagesClient, scanner: Optional[DirectoryScanner] = None):
        """Initialize the deployer.

        Args:
            client: Pages API client
            scanner: Directory scanner used by ``deploy_directory``
        """
        self.client = client
        self.scanner = scanner or DirectoryScanner()

    def deploy_directory(
        self,
        directory: Union[str, Path],
        options: Optional[DeploymentOptions] = None,
    ) -> Deployment:
        """Deploy every file below a directory.

        ``_headers``, ``_redirects`` and ``_worker.js`` at the root of the
        directory are sent as the corresponding options unless the caller
        already set them.

        Args:
            directory: Root directory of the site
            options: Deployment options (not modified)

        Returns:
            The created deployment

        Raises:
            ValueError: If the directory does not exist or is not a directory
            PagesError: If any API call fails
        """
        options = dataclasses.replace(options) if options else DeploymentOptions()
        result = self.scanner.scan(Path(directory))

        if options.headers is None:
            options.headers = result.read_special("_headers")
        if options.redirects is None:
            options.redirects = result.read_special("_redirects")
        if options.worker is None:
            options.worker = result.read_special("_worker.js")

        files = [local_file.to_deployment_file() for local_file in result.files]
        return self.deploy_files(files, options)

    def deploy_files(
        self,
        files: list[DeploymentFile],
        options: Optional[DeploymentOptions] = None,
    ) -> Deployment:
        """Deploy an explicit list of files.

        Files without a precomputed hash are hashed in place. A leading
        slash on a filename is ignored, so "a" and "/a" name the same path;
        if two files share a path the last one wins.

        Args:
            files: Files to deploy
            options: Deployment options

        Returns:
            The created deployment, with the hash of every file

        Raises:
            PagesError: If any API call fails
        """
        options = options or DeploymentOptions()
        log = options.log or (lambda msg: None)
        tokens = TokenCache(lambda: self.client.get_upload_token(log=log))

        self._compute_hashes(files)
        hashes = list(dict.fromkeys(f.hash for f in files if f.hash is not None))
        logger.debug(f"{len(files)} file(s), {len(hashes)} distinct hash(es)")

        missing = self.client.check_missing(hashes, tokens, log=log)
        logger.info(f"{len(missing)} of {len(hashes)} asset(s) missing")

        scheduler = UploadScheduler(
            self.client,
            tokens,
            concurrency=options.concurrency,
            log=log,
            progress_callback=options.progress_callback,
        )
        scheduler.run(missing, files)

        if missing:
            self.client.upsert_hashes(hashes, tokens, log=log)

        form = self._build_form(files, options)
        deployment = self.client.create_deployment(form, log=log)
        deployment.hashes = {
            f.filename.lstrip("/"): f.hash for f in files if f.hash is not None
        }
        logger.info(f"Created deployment {deployment.id} at {deployment.url}")
        return deployment

    def _compute_hashes(self, files: list[DeploymentFile]) -> None:
        for file in files:
            if file.hash:
                continue
            content_base64 = encode_base64(file.read_bytes())
            file.hash = compute_hash_b64(content_base64, file.filename)
            file.content_base64 = content_base64

    @staticmethod
    def build_manifest(files: list[DeploymentFile]) -> dict[str, str]:
        """Map every deploy path (with a leading slash) to its hash."""
        return {
            "/" + f.filename.lstrip("/"): f.hash for f in files if f.hash is not None
        }

    def _build_form(
        self, files: list[DeploymentFile], options: DeploymentOptions
    ) -> MultipartForm:
        form = MultipartForm()
        form.add_json("manifest", self.build_manifest(files))
        if options.branch:
            form.add_field("branch", options.branch)
        if options.commit_message:
            form.add_field("commit_message", options.commit_message)
        if options.commit_hash:
            form.add_field("commit_hash", options.commit_hash)
        if options.headers:
            form.add_file("_headers", options.headers)
        if options.redirects:
            form.add_file("_redirects", options.redirects)
        if options.worker:
            form.add_file("_worker.js", options.worker)
        return form
