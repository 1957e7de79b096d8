"""
Manifest and dependency resolution

Resolving a package is two fetches: the pointer served by the remote, then
the manifest it points to. The dependency resolver walks declared
dependencies depth first and returns them in install order.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .errors import CircularDependencyError, CrossRemoteDependencyError
from .manifest import Manifest, Pointer
from .registry import PackageLocator
from .transport import HttpClient

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPackage:
    """A package with its fetched manifest and pointer"""
    name: str
    manifest: Manifest
    pointer: Pointer
    remote_url: str

    @property
    def version(self) -> str:
        return self.manifest.version

    @property
    def dependencies(self) -> List[str]:
        return self.manifest.dependencies


class ManifestResolver:
    """Fetches pointer and manifest for a package on a remote"""

    def __init__(self, client: HttpClient):
        self.client = client

    def resolve(self, remote_url: str, name: str) -> Tuple[Pointer, Manifest]:
        pointer_url = f"{remote_url}/{name}.yml"
        pointer_text = self.client.get_text(pointer_url, f"pointer for {name}")
        pointer = Pointer.parse(pointer_text, pointer_url)

        manifest_text = self.client.get_text(pointer.url, f"manifest for {name}")
        manifest = Manifest.parse(manifest_text, pointer.url)

        logger.debug("Resolved %s to %s@%s", name, manifest.name, manifest.version)
        return pointer, manifest

    def resolve_package(self, remote_url: str, name: str) -> ResolvedPackage:
        pointer, manifest = self.resolve(remote_url, name)
        return ResolvedPackage(name, manifest, pointer, remote_url)


@dataclass
class _Frame:
    name: str
    package: Optional[ResolvedPackage]
    pending: Iterator[str]


class DependencyResolver:
    """Computes the transitive dependency closure of a manifest"""

    def __init__(self, manifest_resolver: ManifestResolver, locator: PackageLocator):
        self.manifest_resolver = manifest_resolver
        self.locator = locator

    def closure(
        self,
        root: Manifest,
        remote_url: str,
        known: Iterable[str] = (),
        root_name: Optional[str] = None
    ) -> Dict[str, ResolvedPackage]:
        """
        Resolve every package root depends on, directly or not

        The root itself is not included. ``root_name`` is the name the root
        was requested by and defaults to the manifest name. Names in
        ``known`` are treated as already resolved and skipped. The returned
        dict is ordered so that every package comes after all of its
        dependencies.

        Raises CircularDependencyError when a name is met again while still
        on the active path, and CrossRemoteDependencyError when a dependency
        is not listed on remote_url.
        """
        result: Dict[str, ResolvedPackage] = {}
        skip: Set[str] = set(known)
        root_name = root_name or root.name
        path: List[str] = [root_name]
        on_path: Set[str] = {root_name}
        stack = [_Frame(root_name, None, iter(root.dependencies))]
        index: Optional[Set[str]] = None

        while stack:
            frame = stack[-1]
            child = None

            for dep in frame.pending:
                if dep in on_path:
                    raise CircularDependencyError(path + [dep])
                if dep in result or dep in skip:
                    continue
                child = dep
                break

            if child is None:
                stack.pop()
                path.pop()
                on_path.discard(frame.name)
                if frame.package is not None:
                    result[frame.name] = frame.package
                continue

            if index is None:
                index = self.locator.fetch_index(remote_url)
            if child not in index:
                raise CrossRemoteDependencyError(child, frame.name, remote_url)

            package = self.manifest_resolver.resolve_package(remote_url, child)
            stack.append(_Frame(child, package, iter(package.dependencies)))
            path.append(child)
            on_path.add(child)

        return result


def install_order(
    roots: Iterable[ResolvedPackage],
    closures: Iterable[Dict[str, ResolvedPackage]]
) -> Dict[str, ResolvedPackage]:
    """Merge per-root closures into one plan, dependencies first"""
    plan: Dict[str, ResolvedPackage] = {}
    for root, deps in zip(roots, closures):
        for name, package in deps.items():
            plan.setdefault(name, package)
        plan.setdefault(root.name, root)
    return plan
