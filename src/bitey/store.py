"""
On-disk package store

One directory per installed package, holding the manifest it was installed
from (``Thread.yml``) and the raw pointer text (``package.yml``). A package
counts as installed only when both files are present.
"""

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from filelock import FileLock

from .errors import InvalidPackageNameError, MalformedDocumentError, StoreWriteError
from .manifest import Manifest, Pointer

logger = logging.getLogger(__name__)

MANIFEST_FILE = "Thread.yml"
POINTER_FILE = "package.yml"
ARCHIVE_SUFFIX = ".choco.pkg"
LOCK_DIR = ".locks"


def validate_package_name(name: str) -> str:
    """Reject names that would escape or collide inside the store root"""
    if not name or not name.strip():
        raise InvalidPackageNameError(name, "empty name")
    if "/" in name or "\\" in name or "\0" in name:
        raise InvalidPackageNameError(name, "contains a path separator")
    if name.startswith("."):
        raise InvalidPackageNameError(name, "starts with '.'")
    return name


class PackageStore:
    """Installed package records under a single root directory"""

    def __init__(self, root: Path):
        self.root = Path(root)

    def package_dir(self, name: str) -> Path:
        return self.root / validate_package_name(name)

    def manifest_path(self, name: str) -> Path:
        return self.package_dir(name) / MANIFEST_FILE

    def pointer_path(self, name: str) -> Path:
        return self.package_dir(name) / POINTER_FILE

    def archive_path(self, name: str) -> Path:
        return self.package_dir(name) / f"{name}{ARCHIVE_SUFFIX}"

    def exists(self, name: str) -> bool:
        """True when a directory exists for the package, complete or not"""
        return self.package_dir(name).is_dir()

    def is_installed(self, name: str) -> bool:
        return self.manifest_path(name).is_file() and self.pointer_path(name).is_file()

    @contextmanager
    def lock(self, name: str) -> Iterator[FileLock]:
        """Hold the per-package lock; the lock file lives outside the package directory"""
        lock_dir = self.root / LOCK_DIR
        lock_path = lock_dir / f"{validate_package_name(name)}.lock"
        try:
            lock_dir.mkdir(parents=True, exist_ok=True)
            file_lock = FileLock(str(lock_path))
            file_lock.acquire()
        except OSError as e:
            raise StoreWriteError(str(lock_path), str(e), package=name) from e
        try:
            yield file_lock
        finally:
            file_lock.release()

    def read_pointer_text(self, name: str) -> Optional[str]:
        """Raw pointer text, or None when the package has no pointer record"""
        path = self.pointer_path(name)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(
                str(path), "pointer", f"not valid UTF-8 ({e.reason})", package=name
            ) from e

    def read_pointer(self, name: str) -> Optional[Pointer]:
        text = self.read_pointer_text(name)
        if text is None:
            return None
        return Pointer.parse(text, str(self.pointer_path(name)))

    def read_manifest(self, name: str) -> Optional[Manifest]:
        """Stored manifest, or None when it is missing or unreadable"""
        path = self.manifest_path(name)
        if not path.is_file():
            return None
        try:
            return Manifest.load(path)
        except (OSError, MalformedDocumentError) as e:
            logger.warning("Ignoring stored manifest for %s: %s", name, e)
            return None

    def prepare(self, name: str) -> Path:
        """Create an empty directory for the package, replacing any previous one"""
        pkg_dir = self.package_dir(name)
        try:
            if pkg_dir.exists():
                shutil.rmtree(pkg_dir)
            pkg_dir.mkdir(parents=True)
        except OSError as e:
            raise StoreWriteError(str(pkg_dir), str(e), package=name) from e
        return pkg_dir

    def write_record(self, name: str, manifest: Manifest, pointer_raw: str) -> None:
        """Persist the manifest and the raw pointer text"""
        for path, content in (
            (self.manifest_path(name), manifest.dump()),
            (self.pointer_path(name), pointer_raw)
        ):
            try:
                path.write_text(content)
            except OSError as e:
                raise StoreWriteError(str(path), str(e), package=name) from e

    def remove(self, name: str) -> bool:
        """Delete the package directory; False when there is none"""
        pkg_dir = self.package_dir(name)
        if not pkg_dir.exists():
            return False
        try:
            shutil.rmtree(pkg_dir)
        except OSError as e:
            raise StoreWriteError(str(pkg_dir), str(e), package=name) from e
        return True

    def list_installed(self) -> List[str]:
        """Names of all installed packages, sorted"""
        if not self.root.is_dir():
            return []

        names = []
        for entry in self.root.iterdir():
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            if self.is_installed(entry.name):
                names.append(entry.name)
        return sorted(names)
