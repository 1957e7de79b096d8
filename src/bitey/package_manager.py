"""
Main package manager for Bitey

Provides the high-level install/update/remove operations. Failures are
collected per package: one broken package never stops its siblings.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .config import Config, load_config
from .errors import BiteyError, DependencyFailedError, NotInstalledError
from .installer import PackageInstaller, UpdateResult, UpdateStatus
from .registry import PackageLocator, Remote, add_remote, list_remotes
from .resolver import DependencyResolver, ManifestResolver, ResolvedPackage, install_order
from .store import PackageStore, validate_package_name
from .transport import HttpClient

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str, List[str]], bool]
ClientFactory = Callable[[bool], HttpClient]


def _always_yes(message: str, names: List[str]) -> bool:
    return True


@dataclass
class InstallReport:
    """Outcome of a multi-package install"""
    planned: List[str] = field(default_factory=list)
    installed: List[str] = field(default_factory=list)
    failures: Dict[str, BiteyError] = field(default_factory=dict)
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.aborted


@dataclass
class UpdateReport:
    """Outcome of updating several packages"""
    results: List[UpdateResult] = field(default_factory=list)
    failures: Dict[str, BiteyError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures and all(
            r.status != UpdateStatus.NOT_INSTALLED for r in self.results
        )


def _record_failure(failures: Dict[str, BiteyError], name: str, error: BiteyError) -> None:
    if error.package is None:
        error.package = name
    failures[name] = error
    logger.debug("%s failed at stage %s: %s", name, error.stage, error)


class PackageManager:
    """High-level package manager interface"""

    def __init__(
        self,
        config: Optional[Config] = None,
        client_factory: Optional[ClientFactory] = None,
        confirm: Optional[ConfirmFn] = None
    ):
        """Initialize package manager with configuration"""
        self.config = config or load_config()
        self.store = PackageStore(self.config.store_root)
        self.client_factory = client_factory or self._default_client
        self.confirm = confirm or _always_yes

    def _default_client(self, insecure: bool) -> HttpClient:
        return HttpClient(insecure=insecure, timeout=self.config.timeout)

    def _installer(self, client: HttpClient) -> PackageInstaller:
        return PackageInstaller(self.store, client, self.config.script_timeout)

    def remotes(self) -> List[Remote]:
        return list_remotes(self.config.remotes_root)

    def add_remote(self, spec: str) -> Remote:
        remote = add_remote(self.config.remotes_root, spec)
        print(f"✅ Remote added: {remote.url}")
        return remote

    def plan(
        self,
        packages: Sequence[str],
        client: HttpClient,
        failures: Dict[str, BiteyError]
    ) -> Dict[str, ResolvedPackage]:
        """
        Locate and resolve each requested package with its dependencies

        Returns the merged install plan, dependencies first. Packages that
        cannot be planned are added to failures.
        """
        remotes = self.remotes()
        if not remotes:
            logger.warning("No remotes configured in %s", self.config.remotes_root)

        locator = PackageLocator(client)
        manifest_resolver = ManifestResolver(client)
        dependency_resolver = DependencyResolver(manifest_resolver, locator)

        roots: List[ResolvedPackage] = []
        closures: List[Dict[str, ResolvedPackage]] = []
        planned: set = set()

        for name in dict.fromkeys(packages):
            if name in planned:
                continue
            try:
                validate_package_name(name)
                remote = locator.locate(name, remotes)
                root = manifest_resolver.resolve_package(remote.url, name)
                deps = dependency_resolver.closure(
                    root.manifest, remote.url, known=planned, root_name=name
                )
            except BiteyError as e:
                _record_failure(failures, name, e)
                continue

            roots.append(root)
            closures.append(deps)
            planned.update(deps)
            planned.add(name)

        return install_order(roots, closures)

    def install(
        self,
        packages: Sequence[str],
        insecure: Optional[bool] = None,
        assume_yes: bool = False
    ) -> InstallReport:
        """Install packages and their dependencies"""
        insecure = self.config.insecure if insecure is None else insecure
        report = InstallReport()

        with self.client_factory(insecure) as client:
            plan = self.plan(packages, client, report.failures)
            report.planned = list(plan)

            if not plan:
                return report

            print("\n📥 Installing:")
            for name, package in plan.items():
                print(f"- {name} (v{package.version})")

            if not assume_yes and not self.confirm("Install the listed packages?", report.planned):
                print("Aborted.")
                report.aborted = True
                return report

            installer = self._installer(client)
            for name, package in plan.items():
                failed_deps = [d for d in package.dependencies if d in report.failures]
                if failed_deps:
                    _record_failure(report.failures, name, DependencyFailedError(name, failed_deps))
                    continue

                try:
                    installer.install(package.manifest, name, package.pointer.raw)
                except BiteyError as e:
                    _record_failure(report.failures, name, e)
                    continue

                report.installed.append(name)
                print(f"🍫 {name}: installed v{package.version}")

        return report

    def update(
        self,
        packages: Optional[Sequence[str]] = None,
        insecure: Optional[bool] = None
    ) -> UpdateReport:
        """Update the given packages, or every installed package"""
        insecure = self.config.insecure if insecure is None else insecure
        names = list(packages) if packages else self.store.list_installed()
        report = UpdateReport()

        with self.client_factory(insecure) as client:
            installer = self._installer(client)
            for name in names:
                try:
                    validate_package_name(name)
                    result = installer.update(name)
                except BiteyError as e:
                    _record_failure(report.failures, name, e)
                    continue

                report.results.append(result)
                if result.status == UpdateStatus.UPDATED:
                    print(f"⬆️  Updated {name} → v{result.version}")
                elif result.status == UpdateStatus.UP_TO_DATE:
                    print(f"✔ {name} is up to date (v{result.version})")
                else:
                    print(f"✗ Package {name} not installed")

        return report

    def remove(self, name: str, assume_yes: bool = False) -> bool:
        """
        Remove an installed package

        Returns False when the user declines; raises NotInstalledError when
        the store has no directory for the package.
        """
        validate_package_name(name)
        if not self.store.exists(name):
            raise NotInstalledError(name)

        print(f"\n🗑 Removing:\n- {name}")
        if not assume_yes and not self.confirm("Remove the listed package?", [name]):
            print("Aborted.")
            return False

        installer = PackageInstaller(self.store, client=None)
        removed = installer.remove(name)
        if removed:
            print(f"✅ Removed {name}")
        return removed

    def list(self) -> Dict[str, Optional[str]]:
        """Print and return installed packages with their versions"""
        installed = PackageInstaller(self.store, client=None).list_installed()
        if not installed:
            print("No packages installed")
        for name, version in installed.items():
            print(f"  {name}: {version or 'unknown'}")
        return installed
