"""
Package installer for Bitey

Handles installing, updating and removing packages in the store.

An install is not transactional: if the archive or the install command
fails, the package directory keeps whatever was written before the failure.
"""

import logging
import subprocess
import tarfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from .errors import ArchiveDownloadError, ArchiveExtractError, InstallScriptError
from .manifest import Manifest
from .store import PackageStore
from .transport import HttpClient

logger = logging.getLogger(__name__)

SHELL = "sh"


class UpdateStatus(Enum):
    UPDATED = "updated"
    UP_TO_DATE = "up-to-date"
    NOT_INSTALLED = "not-installed"


@dataclass
class UpdateResult:
    """Outcome of an update check"""
    name: str
    status: UpdateStatus
    version: Optional[str] = None
    previous_version: Optional[str] = None


class PackageInstaller:
    """Installs Bitey packages into a store"""

    def __init__(
        self,
        store: PackageStore,
        client: Optional[HttpClient],
        script_timeout: Optional[float] = None
    ):
        self.store = store
        self.client = client
        self.script_timeout = script_timeout

    def install(self, manifest: Manifest, name: str, pointer_raw: str) -> Path:
        """
        Install one package

        Args:
            manifest: Manifest the package resolved to
            name: Store name (the name the package was requested by)
            pointer_raw: Pointer text exactly as fetched

        Returns:
            The package directory
        """
        with self.store.lock(name):
            pkg_dir = self.store.prepare(name)
            self.store.write_record(name, manifest, pointer_raw)

            if manifest.source.archive_url:
                self._fetch_archive(manifest.source.archive_url, name, pkg_dir)

            self._run_install_commands(manifest, name, pkg_dir)

        logger.info("Installed %s v%s", name, manifest.version)
        return pkg_dir

    def _fetch_archive(self, url: str, name: str, pkg_dir: Path) -> None:
        archive = self.store.archive_path(name)
        try:
            try:
                self.client.download(url, archive)
            except ArchiveDownloadError as e:
                e.package = name
                raise

            try:
                with tarfile.open(archive, "r:*") as tar:
                    tar.extractall(pkg_dir, filter="data")
            except (tarfile.TarError, OSError) as e:
                raise ArchiveExtractError(str(archive), str(e), package=name) from e
        finally:
            archive.unlink(missing_ok=True)

    def _run_install_commands(self, manifest: Manifest, name: str, pkg_dir: Path) -> None:
        logger.debug("Running install commands for %s: %s", name, manifest.install_commands)
        try:
            result = subprocess.run(
                [SHELL, "-c", manifest.install_commands],
                cwd=pkg_dir,
                capture_output=True,
                text=True,
                timeout=self.script_timeout
            )
        except subprocess.TimeoutExpired as e:
            raise InstallScriptError(name, None, _text(e.stdout), _text(e.stderr)) from e
        except OSError as e:
            raise InstallScriptError(name, 127, "", str(e)) from e

        if result.stdout:
            logger.debug("[%s stdout] %s", name, result.stdout.rstrip())
        if result.stderr:
            logger.debug("[%s stderr] %s", name, result.stderr.rstrip())

        if result.returncode != 0:
            raise InstallScriptError(name, result.returncode, result.stdout, result.stderr)

    def update(self, name: str) -> UpdateResult:
        """Re-install a package when the remote serves a different version"""
        pointer = self.store.read_pointer(name)
        if pointer is None:
            return UpdateResult(name, UpdateStatus.NOT_INSTALLED)

        text = self.client.get_text(pointer.url, f"manifest for {name}")
        remote_manifest = Manifest.parse(text, pointer.url)
        local_manifest = self.store.read_manifest(name)
        local_version = local_manifest.version if local_manifest else None

        if local_version == remote_manifest.version:
            return UpdateResult(name, UpdateStatus.UP_TO_DATE, remote_manifest.version)

        logger.info("Updating %s: %s -> %s", name, local_version, remote_manifest.version)
        self.install(remote_manifest, name, pointer.raw)
        return UpdateResult(
            name,
            UpdateStatus.UPDATED,
            remote_manifest.version,
            previous_version=local_version
        )

    def remove(self, name: str) -> bool:
        """Uninstall a package; False when it is not in the store"""
        if not self.store.exists(name):
            return False
        with self.store.lock(name):
            removed = self.store.remove(name)
        if removed:
            logger.info("Removed %s", name)
        return removed

    def list_installed(self) -> Dict[str, Optional[str]]:
        """Installed package names with their stored versions"""
        installed: Dict[str, Optional[str]] = {}
        for name in self.store.list_installed():
            manifest = self.store.read_manifest(name)
            installed[name] = manifest.version if manifest else None
        return installed


def _text(output) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output
