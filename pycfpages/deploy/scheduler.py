"""Parallel upload of missing assets."""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from ..api import PagesClient
from ..auth import TokenCache
from ..exceptions import PagesUploadError
from ..models import DeploymentFile, LogCallback
from ..utils import DEFAULT_CONCURRENCY, guess_content_type

logger = logging.getLogger(__name__)


class UploadScheduler:
    """Uploads each missing asset exactly once with a fixed pool of workers.

    All workers pull hashes from one shared queue. ``Queue.get_nowait`` is
    the only place work is handed out, so a hash is never uploaded twice.
    After the first failure the remaining workers stop taking new work and
    the error is re-raised once every worker has returned.
    """

    def __init__(
        self,
        client: PagesClient,
        tokens: TokenCache,
        concurrency: int = DEFAULT_CONCURRENCY,
        log: Optional[LogCallback] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """Initialize the scheduler.

        Args:
            client: Pages API client
            tokens: Upload token cache shared by all workers
            concurrency: Maximum number of parallel uploads (default: 4)
            log: Optional callback receiving progress messages
            progress_callback: Optional callback function(uploaded, total)
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.client = client
        self.tokens = tokens
        self.concurrency = concurrency
        self.log: LogCallback = log or (lambda msg: None)
        self.progress_callback = progress_callback

        self._uploaded = 0
        self._total = 0
        self._counter_lock = threading.Lock()

    def run(self, missing: list[str], files: list[DeploymentFile]) -> int:
        """Upload the content of every missing hash.

        Args:
            missing: Hashes reported missing by the API
            files: All deployment files, with hashes already computed

        Returns:
            Number of uploaded assets

        Raises:
            PagesUploadError: If a hash has no file or an upload is rejected
        """
        files_by_hash: dict[str, DeploymentFile] = {}
        for file in files:
            if file.hash is not None:
                files_by_hash.setdefault(file.hash, file)

        pending: "queue.Queue[str]" = queue.Queue()
        for hash_value in dict.fromkeys(missing):
            pending.put(hash_value)

        self._uploaded = 0
        self._total = pending.qsize()
        if self._total == 0:
            return 0

        workers = min(self.concurrency, self._total)
        logger.debug(f"Uploading {self._total} asset(s) with {workers} worker(s)")
        stop = threading.Event()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._worker, pending, files_by_hash, stop)
                for _ in range(workers)
            ]

        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            raise errors[0]  # type: ignore[misc]

        return self._uploaded

    def _worker(
        self,
        pending: "queue.Queue[str]",
        files_by_hash: dict[str, DeploymentFile],
        stop: threading.Event,
    ) -> None:
        while not stop.is_set():
            try:
                hash_value = pending.get_nowait()
            except queue.Empty:
                return

            try:
                self._upload_one(hash_value, files_by_hash)
            except Exception:
                stop.set()
                raise

    def _upload_one(
        self, hash_value: str, files_by_hash: dict[str, DeploymentFile]
    ) -> None:
        file = files_by_hash.get(hash_value)
        if file is None:
            raise PagesUploadError(f"No file found for missing hash {hash_value}")

        self.log(f"file {file.filename}/{hash_value} missing, uploading.")
        content_base64 = file.get_base64()
        content_type = file.content_type or guess_content_type(file.filename)

        self.client.upload_asset(
            hash_value, content_base64, content_type, self.tokens, log=self.log
        )
        self.log(f"uploaded file {file.filename}/{hash_value}")

        with self._counter_lock:
            self._uploaded += 1
            uploaded = self._uploaded
        if self.progress_callback:
            self.progress_callback(uploaded, self._total)
