"""
Tests for the Bitey command-line interface
"""

import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from bitey.cli import main, prompt_confirm
from bitey.config import Config
from bitey.package_manager import PackageManager
from bitey.registry import add_remote, list_remotes
from tests.test_utils import FakeHttpClient, FakeRemote


class TestCli(unittest.TestCase):
    """Test command dispatch and exit codes"""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.config = Config(
            store_root=self.temp_dir / "store",
            remotes_root=self.temp_dir / "remotes"
        )
        self.client = FakeHttpClient()
        self.remote = FakeRemote(self.client)
        add_remote(self.config.remotes_root, self.remote.url)
        self.pm = PackageManager(self.config, client_factory=lambda insecure: self.client)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def run_cli(self, *args):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(args), pm=self.pm)
        return code, out.getvalue(), err.getvalue()

    def test_help(self):
        code, out, _ = self.run_cli("help")

        self.assertEqual(code, 0)
        self.assertIn("remote-add", out)

    def test_install(self):
        self.remote.publish("app", version="1.2", dependencies=["lib"])
        self.remote.publish("lib")

        code, out, _ = self.run_cli("install", "app", "-y")

        self.assertEqual(code, 0)
        self.assertIn("app: installed v1.2", out)
        self.assertEqual(self.pm.store.list_installed(), ["app", "lib"])

    def test_install_failure_exit_code(self):
        self.remote.publish("good")
        self.remote.publish("bad", commands="exit 2")

        code, out, err = self.run_cli("install", "good", "bad", "-y")

        self.assertEqual(code, 1)
        self.assertIn("bad [script]", err)
        self.assertIn("Installed: good", out)

    def test_install_without_packages(self):
        code, out, _ = self.run_cli("install")

        self.assertEqual(code, 1)
        self.assertIn("bitey help", out)

    def test_update_and_list(self):
        self.remote.publish("app", version="1.0")
        self.run_cli("install", "app", "-y")
        self.remote.publish("app", version="1.1")

        code, out, _ = self.run_cli("update")
        self.assertEqual(code, 0)
        self.assertIn("v1.1", out)

        code, out, _ = self.run_cli("list")
        self.assertIn("app: 1.1", out)

    def test_remove_missing(self):
        code, _, err = self.run_cli("remove", "ghost", "-y")

        self.assertEqual(code, 1)
        self.assertIn("not installed", err)

    def test_remote_add(self):
        code, _, _ = self.run_cli("remote-add", "ppa:jane/tools")

        self.assertEqual(code, 0)
        self.assertIn("ppa.wheedev.org_jane_tools",
                      [r.name for r in list_remotes(self.config.remotes_root)])

    def test_store_option_builds_manager(self):
        store = self.temp_dir / "other-store"
        with patch("bitey.cli.load_config", return_value=self.config):
            with redirect_stdout(io.StringIO()):
                code = main(["--store", str(store), "list"])

        self.assertEqual(code, 0)


class TestPromptConfirm(unittest.TestCase):
    """Test the [Y/n] prompt"""

    def test_answers(self):
        for answer, expected in [("", True), ("y", True), ("YES", True), ("n", False), ("nope", False)]:
            with self.subTest(answer=answer):
                with patch("builtins.input", return_value=answer):
                    self.assertEqual(prompt_confirm("Continue?", ["app"]), expected)

    def test_end_of_input_declines(self):
        with patch("builtins.input", side_effect=EOFError):
            self.assertFalse(prompt_confirm("Continue?", ["app"]))


if __name__ == "__main__":
    unittest.main()
