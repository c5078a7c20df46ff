"""Tests for the upload scheduler."""

import threading
import time
from unittest.mock import Mock

import pytest

from pycfpages.api import PagesClient
from pycfpages.deploy import UploadScheduler
from pycfpages.exceptions import PagesUploadError
from pycfpages.models import DeploymentFile
from pycfpages.utils import encode_base64


@pytest.fixture
def mock_client():
    """Create a mock Pages client."""
    return Mock(spec=PagesClient)


@pytest.fixture
def tokens():
    return Mock()


def uploaded_hashes(mock_client):
    return [c.args[0] for c in mock_client.upload_asset.call_args_list]


class TestUploadScheduler:
    """Test UploadScheduler functionality."""

    def test_uploads_each_missing_hash(self, mock_client, tokens):
        """Test every missing hash is uploaded with its file's content."""
        files = [
            DeploymentFile("a.txt", b"a", hash="h1"),
            DeploymentFile("b.txt", b"b", hash="h2"),
            DeploymentFile("c.txt", b"c", hash="h3"),
        ]
        scheduler = UploadScheduler(mock_client, tokens, concurrency=1)

        count = scheduler.run(["h1", "h3"], files)

        assert count == 2
        assert sorted(uploaded_hashes(mock_client)) == ["h1", "h3"]
        call = next(
            c for c in mock_client.upload_asset.call_args_list if c.args[0] == "h1"
        )
        assert call.args[1] == encode_base64(b"a")
        assert call.args[2] == "text/plain"
        assert call.args[3] is tokens

    def test_duplicate_missing_hashes_uploaded_once(self, mock_client, tokens):
        """Test a hash listed twice is uploaded once."""
        files = [DeploymentFile("a.txt", b"a", hash="h1")]
        scheduler = UploadScheduler(mock_client, tokens)

        assert scheduler.run(["h1", "h1"], files) == 1
        assert mock_client.upload_asset.call_count == 1

    def test_shared_hash_uses_first_file(self, mock_client, tokens):
        """Test files sharing a hash are uploaded from the first match."""
        files = [
            DeploymentFile("first.css", b"x", hash="h1"),
            DeploymentFile("second.css", b"x", hash="h1"),
        ]
        log = Mock()
        scheduler = UploadScheduler(mock_client, tokens, log=log)

        scheduler.run(["h1"], files)

        log.assert_any_call("file first.css/h1 missing, uploading.")
        log.assert_any_call("uploaded file first.css/h1")

    def test_nothing_missing(self, mock_client, tokens):
        """Test an empty missing list uploads nothing."""
        scheduler = UploadScheduler(mock_client, tokens)

        assert scheduler.run([], [DeploymentFile("a.txt", b"a", hash="h1")]) == 0
        mock_client.upload_asset.assert_not_called()

    def test_content_type_override(self, mock_client, tokens):
        """Test an explicit content type wins over the guess."""
        files = [
            DeploymentFile(
                "feed", b"<rss/>", content_type="application/rss+xml", hash="h1"
            )
        ]
        UploadScheduler(mock_client, tokens).run(["h1"], files)

        assert mock_client.upload_asset.call_args.args[2] == "application/rss+xml"

    def test_content_type_fallback(self, mock_client, tokens):
        """Test unknown types fall back to application/octet-stream."""
        files = [DeploymentFile("blob", b"\x00\x01", hash="h1")]
        UploadScheduler(mock_client, tokens).run(["h1"], files)

        assert mock_client.upload_asset.call_args.args[2] == "application/octet-stream"

    def test_uses_cached_base64(self, mock_client, tokens):
        """Test cached base64 content is used without reading the file."""
        producer = Mock(return_value=b"fresh")
        file = DeploymentFile("a.txt", producer, hash="h1")
        file.content_base64 = "Y2FjaGVk"

        UploadScheduler(mock_client, tokens).run(["h1"], [file])

        producer.assert_not_called()
        assert mock_client.upload_asset.call_args.args[1] == "Y2FjaGVk"

    def test_reads_lazy_content(self, mock_client, tokens):
        """Test lazy content is read when nothing is cached."""
        producer = Mock(return_value=b"lazy")
        file = DeploymentFile("a.txt", producer, hash="h1")

        UploadScheduler(mock_client, tokens).run(["h1"], [file])

        producer.assert_called_once()
        assert mock_client.upload_asset.call_args.args[1] == encode_base64(b"lazy")

    def test_unknown_hash_raises(self, mock_client, tokens):
        """Test a missing hash without a matching file is an error."""
        files = [DeploymentFile("a.txt", b"a", hash="h1")]

        with pytest.raises(PagesUploadError, match="No file found for missing hash h9"):
            UploadScheduler(mock_client, tokens).run(["h9"], files)

    def test_invalid_concurrency(self, mock_client, tokens):
        """Test concurrency below one is rejected."""
        with pytest.raises(ValueError, match="concurrency"):
            UploadScheduler(mock_client, tokens, concurrency=0)

    def test_progress_callback(self, mock_client, tokens):
        """Test progress is reported after every upload."""
        files = [
            DeploymentFile("a.txt", b"a", hash="h1"),
            DeploymentFile("b.txt", b"b", hash="h2"),
        ]
        progress = Mock()

        UploadScheduler(
            mock_client, tokens, concurrency=1, progress_callback=progress
        ).run(["h1", "h2"], files)

        assert [c.args for c in progress.call_args_list] == [(1, 2), (2, 2)]

    def test_failure_stops_remaining_work(self, mock_client, tokens):
        """Test the first failure is raised and no new work is started."""
        files = [DeploymentFile(f"{i}.txt", b"x", hash=f"h{i}") for i in range(5)]
        mock_client.upload_asset.side_effect = PagesUploadError("Failed to upload")

        with pytest.raises(PagesUploadError, match="Failed to upload"):
            UploadScheduler(mock_client, tokens, concurrency=1).run(
                [f"h{i}" for i in range(5)], files
            )

        assert mock_client.upload_asset.call_count == 1

    def test_parallel_uploads_are_exclusive(self, mock_client, tokens):
        """Test parallel workers upload every hash exactly once."""
        files = [DeploymentFile(f"{i}.txt", b"x", hash=f"h{i}") for i in range(40)]
        lock = threading.Lock()
        state = {"in_flight": 0, "max_in_flight": 0}

        def upload(hash_value, content_base64, content_type, tokens, log=None):
            with lock:
                state["in_flight"] += 1
                state["max_in_flight"] = max(state["max_in_flight"], state["in_flight"])
            time.sleep(0.005)
            with lock:
                state["in_flight"] -= 1

        mock_client.upload_asset.side_effect = upload
        scheduler = UploadScheduler(mock_client, tokens, concurrency=4)

        count = scheduler.run([f.hash for f in files], files)

        assert count == 40
        hashes = uploaded_hashes(mock_client)
        assert len(hashes) == 40
        assert set(hashes) == {f"h{i}" for i in range(40)}
        assert 1 <= state["max_in_flight"] <= 4
