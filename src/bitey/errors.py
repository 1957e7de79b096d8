"""
Bitey exception classes

Every error carries the pipeline stage it came from and, when known, the
package it concerns, so a batch report can say what failed and where.
"""

from typing import List, Optional


class BiteyError(Exception):
    """Base exception for Bitey errors"""

    stage = "general"

    def __init__(self, message: str, package: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.package = package


class ConfigError(BiteyError):
    """Configuration file could not be loaded"""

    stage = "config"


class RemoteUnreachableError(BiteyError):
    """An HTTP fetch failed (connection, timeout or error status)"""

    stage = "fetch"

    def __init__(
        self,
        url: str,
        what: str,
        cause: str,
        status_code: Optional[int] = None,
        package: Optional[str] = None
    ):
        super().__init__(f"Could not fetch {what} from {url}: {cause}", package)
        self.url = url
        self.what = what
        self.cause = cause
        self.status_code = status_code


class MalformedDocumentError(BiteyError):
    """A fetched or stored document does not have the expected shape"""

    stage = "parse"

    def __init__(self, source: str, what: str, reason: str, package: Optional[str] = None):
        super().__init__(f"Malformed {what} at {source}: {reason}", package)
        self.source = source
        self.what = what
        self.reason = reason


class CrossRemoteDependencyError(MalformedDocumentError):
    """A dependency is not hosted on the remote of the package declaring it"""

    def __init__(self, dependency: str, declared_by: str, remote_url: str):
        super().__init__(
            remote_url,
            f"dependency list of {declared_by}",
            f"'{dependency}' is not listed on this remote "
            f"(dependencies must live on the same remote)",
            package=declared_by
        )
        self.dependency = dependency
        self.declared_by = declared_by


class PackageNotFoundError(BiteyError):
    """No configured remote lists the package"""

    stage = "locate"

    def __init__(self, name: str, searched: int = 0):
        super().__init__(f"Package not found in {searched} remote(s): {name}", name)


class CircularDependencyError(BiteyError):
    """The dependency graph contains a cycle"""

    stage = "resolve"

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(
            f"Circular dependency involving {cycle[-1]}: {' -> '.join(cycle)}",
            cycle[0]
        )


class ArchiveDownloadError(BiteyError):
    """The package archive could not be downloaded"""

    stage = "download"

    def __init__(self, url: str, cause: str, package: Optional[str] = None):
        super().__init__(f"Failed to download archive {url}: {cause}", package)
        self.url = url
        self.cause = cause


class ArchiveExtractError(BiteyError):
    """The downloaded archive could not be extracted"""

    stage = "extract"

    def __init__(self, path: str, cause: str, package: Optional[str] = None):
        super().__init__(f"Failed to extract archive {path}: {cause}", package)
        self.path = path
        self.cause = cause


class InstallScriptError(BiteyError):
    """The install command exited with a non-zero status or timed out"""

    stage = "script"

    def __init__(
        self,
        package: str,
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = ""
    ):
        if returncode is None:
            summary = "install command timed out"
        else:
            summary = f"install command exited with status {returncode}"
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"{summary}: {detail}" if detail else summary
        super().__init__(message, package)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class NotInstalledError(BiteyError):
    """The package has no record in the store"""

    stage = "store"

    def __init__(self, name: str):
        super().__init__(f"Package {name} is not installed", name)


class StoreWriteError(BiteyError):
    """Writing to the package store failed"""

    stage = "store"

    def __init__(self, path: str, cause: str, package: Optional[str] = None):
        super().__init__(f"Could not write {path}: {cause}", package)
        self.path = path
        self.cause = cause


class InvalidPackageNameError(BiteyError):
    """The name cannot be used as a store directory"""

    stage = "store"

    def __init__(self, name: str, reason: str):
        super().__init__(f"Invalid package name {name!r}: {reason}", name)


class DependencyFailedError(BiteyError):
    """A package was skipped because one of its dependencies failed"""

    stage = "dependency"

    def __init__(self, name: str, failed: List[str]):
        super().__init__(
            f"Not installed because dependencies failed: {', '.join(failed)}",
            name
        )
        self.failed = failed
