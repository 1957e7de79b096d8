"""
Bitey Package Manager

Installs packages described by YAML manifests served from remote indexes.
"""

from .config import Config, load_config
from .errors import (
    BiteyError, RemoteUnreachableError, MalformedDocumentError,
    CrossRemoteDependencyError, PackageNotFoundError, CircularDependencyError,
    ArchiveDownloadError, ArchiveExtractError, InstallScriptError,
    NotInstalledError, StoreWriteError, InvalidPackageNameError,
    DependencyFailedError, ConfigError
)
from .manifest import Manifest, Pointer, SourceUrls
from .registry import Remote, PackageLocator, list_remotes, add_remote
from .resolver import ManifestResolver, DependencyResolver, ResolvedPackage
from .store import PackageStore
from .installer import PackageInstaller, UpdateResult, UpdateStatus
from .package_manager import PackageManager, InstallReport, UpdateReport
from .transport import HttpClient

__version__ = "0.1.0"

__all__ = [
    'PackageManager',
    'InstallReport',
    'UpdateReport',
    'PackageInstaller',
    'UpdateResult',
    'UpdateStatus',
    'PackageStore',
    'ManifestResolver',
    'DependencyResolver',
    'ResolvedPackage',
    'Remote',
    'PackageLocator',
    'list_remotes',
    'add_remote',
    'Manifest',
    'Pointer',
    'SourceUrls',
    'HttpClient',
    'Config',
    'load_config',
    'BiteyError',
    'RemoteUnreachableError',
    'MalformedDocumentError',
    'CrossRemoteDependencyError',
    'PackageNotFoundError',
    'CircularDependencyError',
    'ArchiveDownloadError',
    'ArchiveExtractError',
    'InstallScriptError',
    'NotInstalledError',
    'StoreWriteError',
    'InvalidPackageNameError',
    'DependencyFailedError',
    'ConfigError'
]
