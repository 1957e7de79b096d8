"""
Tests for the on-disk package store
"""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from bitey.errors import InvalidPackageNameError, MalformedDocumentError, StoreWriteError
from bitey.manifest import Manifest
from bitey.store import PackageStore, validate_package_name


class TestPackageStore(unittest.TestCase):
    """Test store layout and records"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.store = PackageStore(Path(self.temp_dir) / "store")
        self.manifest = Manifest(name="app", version="1.0", install_commands="true")
        self.pointer = "url: https://r.example.com/threads/app/Thread.yml\n"

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_invalid_names(self):
        for name in ["", "  ", "../etc", "a/b", ".locks", ".."]:
            with self.subTest(name=name):
                with self.assertRaises(InvalidPackageNameError):
                    validate_package_name(name)
        self.assertEqual(validate_package_name("lib-2.0_x"), "lib-2.0_x")

    def test_record_round_trip(self):
        self.store.prepare("app")
        self.store.write_record("app", self.manifest, self.pointer)

        self.assertTrue(self.store.is_installed("app"))
        self.assertEqual(self.store.read_manifest("app"), self.manifest)
        self.assertEqual(self.store.read_pointer_text("app"), self.pointer)
        self.assertEqual(self.store.read_pointer("app").url,
                         "https://r.example.com/threads/app/Thread.yml")

    def test_prepare_replaces_directory(self):
        pkg_dir = self.store.prepare("app")
        (pkg_dir / "stale.txt").write_text("old")

        self.store.prepare("app")

        self.assertEqual(list(pkg_dir.iterdir()), [])

    def test_incomplete_record_is_not_installed(self):
        self.store.prepare("half")
        self.store.pointer_path("half").write_text(self.pointer)

        self.assertTrue(self.store.exists("half"))
        self.assertFalse(self.store.is_installed("half"))
        self.assertIsNone(self.store.read_manifest("half"))
        self.assertEqual(self.store.list_installed(), [])

    def test_corrupt_manifest_reads_as_none(self):
        self.store.prepare("app")
        self.store.write_record("app", self.manifest, self.pointer)
        self.store.manifest_path("app").write_text("version: [\n")

        with self.assertLogs("bitey.store", level="WARNING"):
            self.assertIsNone(self.store.read_manifest("app"))

    def test_corrupt_pointer_raises(self):
        self.store.prepare("app")
        self.store.pointer_path("app").write_text("nothing: here\n")

        with self.assertRaises(MalformedDocumentError):
            self.store.read_pointer("app")

    def test_undecodable_manifest_reads_as_none(self):
        self.store.prepare("app")
        self.store.write_record("app", self.manifest, self.pointer)
        self.store.manifest_path("app").write_bytes(b"\xff\xfe garbage")

        with self.assertLogs("bitey.store", level="WARNING"):
            self.assertIsNone(self.store.read_manifest("app"))
        self.assertEqual(self.store.list_installed(), ["app"])

    def test_undecodable_pointer_raises(self):
        self.store.prepare("app")
        self.store.pointer_path("app").write_bytes(b"\xff\xfe garbage")

        with self.assertRaises(MalformedDocumentError) as ctx:
            self.store.read_pointer("app")

        self.assertEqual(ctx.exception.package, "app")

    def test_lock_failure_is_store_error(self):
        with patch("bitey.store.FileLock.acquire", side_effect=PermissionError("denied")):
            with self.assertRaises(StoreWriteError) as ctx:
                with self.store.lock("app"):
                    self.fail("lock should not be acquired")

        self.assertEqual(ctx.exception.stage, "store")
        self.assertEqual(ctx.exception.package, "app")

    def test_list_installed_skips_locks(self):
        for name in ("zlib", "app"):
            self.store.prepare(name)
            self.store.write_record(name, self.manifest, self.pointer)
        with self.store.lock("app"):
            pass

        self.assertTrue((self.store.root / ".locks").is_dir())
        self.assertEqual(self.store.list_installed(), ["app", "zlib"])

    def test_remove(self):
        self.store.prepare("app")
        self.store.write_record("app", self.manifest, self.pointer)

        self.assertTrue(self.store.remove("app"))
        self.assertFalse(self.store.exists("app"))
        self.assertFalse(self.store.remove("app"))

    def test_missing_root(self):
        self.assertEqual(self.store.list_installed(), [])
        self.assertIsNone(self.store.read_pointer("app"))


if __name__ == "__main__":
    unittest.main()
