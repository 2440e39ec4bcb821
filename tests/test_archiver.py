"""Archiver tests."""

import inspect
import os
import sys
import tarfile
import zipfile
from concurrent.futures import ThreadPoolExecutor

import pytest

from stagezip import Archiver, ArchiveWriteFailure, InvalidInput, archive_directory, archive_file, list_entries
from stagezip.ZipArchive import ZipContainerWriter


class TestArchiveDirectory:
    """archive_directory behaviour"""

    def test_basic_tree_entries(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        archive_directory(out, sample_tree)

        with zipfile.ZipFile(out) as zf:
            names = zf.namelist()
            assert set(names) == {"file1.txt", "sub/", "sub/file2.txt"}
            assert zf.read("file1.txt") == b"hello"
            assert zf.read("sub/file2.txt") == b"world"

    def test_directory_written_before_its_content(self, tmp_path, nested_tree):
        out = tmp_path / "out.zip"
        archive_directory(out, nested_tree)

        names = list_entries(out)
        for index, name in enumerate(names):
            parent = name.rstrip("/").rpartition("/")[0]
            if parent:
                assert names.index(parent + "/") < index

    def test_empty_directories_are_kept(self, tmp_path, nested_tree):
        out = tmp_path / "out.zip"
        archive_directory(out, nested_tree)

        names = list_entries(out)
        assert "empty/" in names
        assert "logs/empty-run/" in names

    def test_root_is_not_an_entry(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        archive_directory(out, sample_tree)

        assert all(not name.startswith("root") for name in list_entries(out))

    def test_trailing_separator_on_source(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        archive_directory(out, str(sample_tree) + os.sep)

        assert set(list_entries(out)) == {"file1.txt", "sub/", "sub/file2.txt"}

    def test_relative_source_dir(self, tmp_path, sample_tree, monkeypatch):
        monkeypatch.chdir(tmp_path)
        archive_directory("out.zip", "root")

        assert set(list_entries(tmp_path / "out.zip")) == {"file1.txt", "sub/", "sub/file2.txt"}

    def test_overwrites_existing_archive(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        out.write_bytes(b"stale content")
        archive_directory(out, sample_tree)

        assert zipfile.is_zipfile(out)

    def test_archive_inside_source_is_skipped(self, sample_tree):
        out = sample_tree / "self.zip"
        archive_directory(out, sample_tree)

        assert "self.zip" not in list_entries(out)

    def test_empty_directory_produces_empty_archive(self, tmp_path):
        source = tmp_path / "empty"
        source.mkdir()
        out = tmp_path / "out.zip"
        archive_directory(out, source)

        assert list_entries(out) == []

    def test_deep_tree_does_not_recurse(self, tmp_path):
        source = tmp_path / "deep"
        source.mkdir()
        depth = 300
        leaf = source
        for _ in range(depth):
            leaf = leaf / "d"
            leaf.mkdir()
        (leaf / "leaf.txt").write_bytes(b"x")
        out = tmp_path / "deep.zip"

        # A recursive walk would need one frame per level
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(len(inspect.stack()) + 150)
        try:
            archive_directory(out, source)
        finally:
            sys.setrecursionlimit(limit)

        names = list_entries(out)
        assert len(names) == depth + 1
        assert names[-1] == "d/" * depth + "leaf.txt"

    def test_tar_gz_output(self, tmp_path, sample_tree):
        out = tmp_path / "out.tar.gz"
        archive_directory(out, sample_tree)

        with tarfile.open(out, "r:gz") as tf:
            assert set(tf.getnames()) == {"file1.txt", "sub", "sub/file2.txt"}
            assert tf.extractfile("sub/file2.txt").read() == b"world"

    def test_stored_compression(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        Archiver(compression=zipfile.ZIP_STORED).archive_directory(out, sample_tree)

        with zipfile.ZipFile(out) as zf:
            assert zf.getinfo("file1.txt").compress_type == zipfile.ZIP_STORED

    def test_progress_callback_counts_every_byte(self, tmp_path, nested_tree):
        counted = []
        Archiver(buffer_size=1024, progress_callback=counted.append).archive_directory(
            tmp_path / "out.zip", nested_tree)

        total = sum(p.stat().st_size for p in nested_tree.rglob("*") if p.is_file())
        assert sum(counted) == total
        assert max(counted) <= 1024

    def test_one_archiver_serves_concurrent_calls(self, tmp_path, sample_tree, nested_tree):
        archiver = Archiver()
        jobs = [(tmp_path / f"{i}.zip", tree) for i, tree in enumerate([sample_tree, nested_tree] * 4)]
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(lambda job: archiver.archive_directory(*job), jobs))

        for i in range(0, 8, 2):
            assert set(list_entries(tmp_path / f"{i}.zip")) == {"file1.txt", "sub/", "sub/file2.txt"}
            assert "a/b/c/d/deep.txt" in list_entries(tmp_path / f"{i + 1}.zip")


class TestArchiveDirectoryErrors:
    """archive_directory failures"""

    def test_file_source_is_invalid_input(self, tmp_path, sample_tree):
        out = tmp_path / "out.zip"
        with pytest.raises(InvalidInput):
            archive_directory(out, sample_tree / "file1.txt")
        assert not out.exists()

    def test_missing_source_is_invalid_input(self, tmp_path):
        out = tmp_path / "out.zip"
        with pytest.raises(InvalidInput) as exc_info:
            archive_directory(out, tmp_path / "missing")
        assert exc_info.value.path == str(tmp_path / "missing")
        assert not out.exists()

    def test_invalid_input_is_a_value_error(self, tmp_path):
        with pytest.raises(ValueError):
            archive_directory(tmp_path / "out.zip", tmp_path / "missing")

    def test_unwritable_destination(self, tmp_path, sample_tree):
        with pytest.raises(ArchiveWriteFailure):
            archive_directory(tmp_path / "no" / "such" / "dir" / "out.zip", sample_tree)

    def test_write_failure_keeps_cause(self, tmp_path, sample_tree, monkeypatch):
        def failing_add_file(self, name, source, size):
            raise OSError("disk full")

        monkeypatch.setattr(ZipContainerWriter, "add_file", failing_add_file)
        with pytest.raises(ArchiveWriteFailure) as exc_info:
            archive_directory(tmp_path / "out.zip", sample_tree)
        assert str(exc_info.value.__cause__) == "disk full"

    def test_close_failure_is_only_logged(self, tmp_path, sample_tree, monkeypatch, caplog):
        original_close = ZipContainerWriter.close

        def failing_close(self):
            original_close(self)
            raise OSError("close failed")

        monkeypatch.setattr(ZipContainerWriter, "close", failing_close)
        archive_directory(tmp_path / "out.zip", sample_tree)

        assert "Unable to close the archive output stream" in caplog.text
        assert set(list_entries(tmp_path / "out.zip")) == {"file1.txt", "sub/", "sub/file2.txt"}

    def test_close_failure_does_not_mask_write_failure(self, tmp_path, sample_tree, monkeypatch, caplog):
        def failing_add_file(self, name, source, size):
            raise OSError("disk full")

        def failing_close(self):
            raise OSError("close failed")

        monkeypatch.setattr(ZipContainerWriter, "add_file", failing_add_file)
        monkeypatch.setattr(ZipContainerWriter, "close", failing_close)
        with pytest.raises(ArchiveWriteFailure) as exc_info:
            archive_directory(tmp_path / "out.zip", sample_tree)
        assert str(exc_info.value.__cause__) == "disk full"
        assert "Unable to close the archive output stream" in caplog.text


class TestArchiveFile:
    """archive_file writes a single named entry"""

    def test_single_entry_named_after_file(self, tmp_path, sample_tree):
        out = tmp_path / "single.zip"
        archive_file(sample_tree / "sub" / "file2.txt", out)

        with zipfile.ZipFile(out) as zf:
            assert zf.namelist() == ["file2.txt"]
            assert zf.read("file2.txt") == b"world"

    def test_single_file_tar(self, tmp_path, sample_tree):
        out = tmp_path / "single.tar"
        archive_file(sample_tree / "file1.txt", out)

        assert list_entries(out) == ["file1.txt"]

    def test_directory_is_invalid_input(self, tmp_path, sample_tree):
        out = tmp_path / "single.zip"
        with pytest.raises(InvalidInput):
            archive_file(sample_tree, out)
        assert not out.exists()
