"""
Tests for preparing downloads.
"""

import io
import os
import tempfile
import unittest
import zipfile
from pathlib import Path

from filedepot.download import ArchiveExport, SingleFileExport, parse_name_list, prepare_export
from filedepot.errors import FilesNotFoundError
from filedepot.fs import FileStore


def _store_with(tmpdir: str, files: dict) -> FileStore:
    for name, content in files.items():
        (Path(tmpdir) / name).write_bytes(content)
    return FileStore(Path(tmpdir), chunk_size=1024)


def _read_zip(export: ArchiveExport) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(b"".join(export.iter_chunks())))


def _open_descriptors(path: Path) -> int:
    fd_dir = "/proc/self/fd"
    count = 0
    for fd in os.listdir(fd_dir):
        try:
            if os.readlink(os.path.join(fd_dir, fd)) == str(path):
                count += 1
        except OSError:
            continue
    return count


class TestParseNameList(unittest.TestCase):
    def test_none_is_empty(self):
        self.assertEqual(parse_name_list(None), [])

    def test_commas_and_repeats_are_flattened(self):
        self.assertEqual(
            parse_name_list(["a.txt,b.txt", " c.txt ", ",,", ""]),
            ["a.txt", "b.txt", "c.txt"],
        )

    def test_single_string(self):
        self.assertEqual(parse_name_list("a.txt, b.txt"), ["a.txt", "b.txt"])


class TestPrepareExport(unittest.TestCase):
    """Tests for single-file and archive exports."""

    def test_single_name_streams_file_as_is(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            content = b"x" * 5000
            store = _store_with(tmpdir, {"big.bin": content, "other.txt": b"o"})

            export = prepare_export(store, ["big.bin"])

            self.assertIsInstance(export, SingleFileExport)
            self.assertEqual(export.filename, "big.bin")
            self.assertEqual(export.size_bytes, 5000)
            self.assertEqual(export.media_type, "application/octet-stream")
            chunks = list(export.iter_chunks())
            self.assertEqual(b"".join(chunks), content)
            self.assertTrue(all(len(c) <= 1024 for c in chunks))
            self.assertTrue(export.handle.closed)

    def test_several_names_build_archive_in_request_order(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.txt": b"A", "b.txt": b"B", "c.txt": b"C"})

            export = prepare_export(store, ["c.txt", "a.txt"])

            self.assertIsInstance(export, ArchiveExport)
            self.assertRegex(export.filename, r"^download_\d+\.zip$")
            self.assertEqual(export.media_type, "application/zip")
            with _read_zip(export) as zf:
                self.assertEqual(zf.namelist(), ["c.txt", "a.txt"])
                self.assertEqual(zf.read("c.txt"), b"C")

    def test_duplicate_names_collapse(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.txt": b"A"})

            export = prepare_export(store, ["a.txt", "a.txt"])

            self.assertIsInstance(export, SingleFileExport)
            export.close()

    def test_no_selection_exports_everything_sorted(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"b.txt": b"B", "a.txt": b"A"})

            export = prepare_export(store)

            with _read_zip(export) as zf:
                self.assertEqual(zf.namelist(), ["a.txt", "b.txt"])

    def test_no_selection_with_one_file_is_still_that_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"only.txt": b"1"})

            export = prepare_export(store, [])

            self.assertIsInstance(export, SingleFileExport)
            export.close()

    def test_empty_store_gives_empty_archive(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FileStore(Path(tmpdir) / "never-created")

            export = prepare_export(store)

            self.assertIsInstance(export, ArchiveExport)
            with _read_zip(export) as zf:
                self.assertEqual(zf.namelist(), [])

    def test_any_missing_name_fails_the_whole_export(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.txt": b"A"})

            with self.assertRaises(FilesNotFoundError) as ctx:
                prepare_export(store, ["a.txt", "nope.txt", "gone.txt"])

            self.assertEqual(ctx.exception.names, ["nope.txt", "gone.txt"])
            self.assertEqual(str(ctx.exception), "Files not found: nope.txt, gone.txt")

    def test_path_names_are_not_found(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "store"
            root.mkdir()
            (Path(tmpdir) / "secret.txt").write_bytes(b"s")
            store = FileStore(root)

            with self.assertRaises(FilesNotFoundError):
                prepare_export(store, ["../secret.txt"])

    def test_directory_name_is_not_found(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "sub").mkdir()

            with self.assertRaises(FilesNotFoundError):
                prepare_export(FileStore(Path(tmpdir)), ["sub"])

    def test_symlink_is_not_exported(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir) / "store"
            root.mkdir()
            (Path(tmpdir) / "secret.txt").write_bytes(b"s")
            (root / "link.txt").symlink_to(Path(tmpdir) / "secret.txt")

            with self.assertRaises(FilesNotFoundError):
                prepare_export(FileStore(root), ["link.txt"])


@unittest.skipUnless(os.path.isdir("/proc/self/fd"), "needs /proc/self/fd")
class TestExportClose(unittest.TestCase):
    """Tests for releasing files of a download cut short."""

    def test_closing_archive_mid_stream_releases_source(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.bin": os.urandom(300 * 1024), "b.bin": b"B"})
            source = (Path(tmpdir) / "a.bin").resolve()

            export = prepare_export(store, ["a.bin", "b.bin"])
            chunks = export.iter_chunks()
            next(chunks)
            self.assertEqual(_open_descriptors(source), 1)

            export.close()

            self.assertEqual(_open_descriptors(source), 0)
            with self.assertRaises(StopIteration):
                next(chunks)

    def test_closing_unstarted_archive_is_harmless(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.txt": b"A", "b.txt": b"B"})

            export = prepare_export(store, ["a.txt", "b.txt"])
            export.close()
            export.close()

    def test_closing_single_file_mid_stream_releases_it(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store_with(tmpdir, {"a.bin": b"x" * 5000})
            source = (Path(tmpdir) / "a.bin").resolve()

            export = prepare_export(store, ["a.bin"])
            next(export.iter_chunks())
            export.close()

            self.assertEqual(_open_descriptors(source), 0)


if __name__ == "__main__":
    unittest.main()
