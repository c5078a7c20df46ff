"""Tests for directory scanning."""

from pathlib import Path

import pytest

from pycfpages.deploy import DirectoryScanner, LocalFile


@pytest.fixture
def scanner():
    return DirectoryScanner()


class TestLocalFile:
    """Tests for LocalFile."""

    def test_from_path_uses_forward_slashes(self, tmp_path):
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        file_path = nested / "c.txt"
        file_path.write_text("c")

        local_file = LocalFile.from_path(file_path, tmp_path)

        assert local_file.relative_path == "a/b/c.txt"
        assert local_file.path == file_path

    def test_deployment_file_reads_lazily(self, tmp_path):
        """Test the content is read when requested, not at creation."""
        file_path = tmp_path / "late.txt"
        file_path.write_text("before")
        deployment_file = LocalFile.from_path(file_path, tmp_path).to_deployment_file()

        file_path.write_text("after")

        assert deployment_file.filename == "late.txt"
        assert deployment_file.read_bytes() == b"after"


class TestDirectoryScanner:
    """Tests for DirectoryScanner."""

    def test_scan_recursive_sorted(self, scanner, tmp_path):
        (tmp_path / "b.txt").write_text("b")
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "sub" / "deep").mkdir(parents=True)
        (tmp_path / "sub" / "deep" / "x.js").write_text("x")

        result = scanner.scan(tmp_path)

        assert [f.relative_path for f in result.files] == [
            "a.txt",
            "b.txt",
            "sub/deep/x.js",
        ]
        assert result.special_files == {}

    def test_root_special_files_are_captured(self, scanner, tmp_path):
        (tmp_path / "_headers").write_text("headers")
        (tmp_path / "_redirects").write_text("redirects")
        (tmp_path / "_worker.js").write_text("worker")
        (tmp_path / "index.html").write_text("index")

        result = scanner.scan(tmp_path)

        assert [f.relative_path for f in result.files] == ["index.html"]
        assert result.read_special("_headers") == "headers"
        assert result.read_special("_redirects") == "redirects"
        assert result.read_special("_worker.js") == "worker"

    def test_nested_special_names_are_assets(self, scanner, tmp_path):
        """Test only the root copies of special files are configuration."""
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "_headers").write_text("nested")
        (tmp_path / "sub" / "_worker.js").write_text("nested")

        result = scanner.scan(tmp_path)

        assert [f.relative_path for f in result.files] == [
            "sub/_headers",
            "sub/_worker.js",
        ]
        assert result.read_special("_headers") is None

    def test_empty_directory(self, scanner, tmp_path):
        result = scanner.scan(tmp_path)
        assert result.files == []

    def test_nonexistent_path(self, scanner, tmp_path):
        with pytest.raises(ValueError, match="does not exist"):
            scanner.scan(tmp_path / "nope")

    def test_file_instead_of_directory(self, scanner, tmp_path):
        file_path = tmp_path / "file.txt"
        file_path.write_text("x")

        with pytest.raises(ValueError, match="not a directory"):
            scanner.scan(file_path)

    def test_relative_path_argument(self, scanner, tmp_path, monkeypatch):
        (tmp_path / "site").mkdir()
        (tmp_path / "site" / "index.html").write_text("x")
        monkeypatch.chdir(tmp_path)

        result = scanner.scan(Path("site"))

        assert [f.relative_path for f in result.files] == ["index.html"]
        assert result.files[0].path.is_absolute()
