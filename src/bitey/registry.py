"""
Remote registry and package locator

Remotes are configured as ``<remotes_root>/<name>/remote.yml`` files holding a
single ``url`` field. Each remote publishes ``list.txt``, one package name per
line, which the locator uses to find the remote hosting a package.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Set

from .errors import BiteyError, MalformedDocumentError, PackageNotFoundError, StoreWriteError
from .manifest import load_yaml
from .transport import HttpClient

logger = logging.getLogger(__name__)

REMOTE_FILE = "remote.yml"
INDEX_FILE = "list.txt"
PPA_PREFIX = "ppa:"
PPA_HOST = "http://ppa.wheedev.org"


@dataclass(frozen=True)
class Remote:
    """A named source of package metadata"""
    name: str
    url: str

    def index_url(self) -> str:
        return f"{self.url}/{INDEX_FILE}"


def read_remote(path: Path) -> Remote:
    """Parse one remote descriptor; the remote is named after its directory"""
    try:
        text = path.read_text()
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedDocumentError(str(path), "remote descriptor", str(e)) from e

    data = load_yaml(text, str(path), "remote descriptor")
    if not isinstance(data, dict) or not isinstance(data.get("url"), str) or not data["url"].strip():
        raise MalformedDocumentError(str(path), "remote descriptor", "missing 'url' field")

    return Remote(name=path.parent.name, url=data["url"].strip().rstrip("/"))


def list_remotes(root: Path) -> List[Remote]:
    """
    Find every configured remote below root

    Broken descriptors are reported and skipped. The result is sorted by
    remote name so that lookups have a stable tie-break.
    """
    root = Path(root)
    if not root.is_dir():
        logger.debug("Remotes directory %s does not exist", root)
        return []

    remotes = []
    for dirpath, _dirnames, filenames in os.walk(root):
        if REMOTE_FILE not in filenames:
            continue
        path = Path(dirpath) / REMOTE_FILE
        try:
            remotes.append(read_remote(path))
        except MalformedDocumentError as e:
            logger.warning("Skipping remote: %s", e)

    return sorted(remotes, key=lambda r: (r.name, r.url))


def remote_url_from_spec(spec: str) -> str:
    """Expand ``ppa:<profile>/<ppa>`` shorthands; other values are URLs"""
    spec = spec.strip()
    if spec.startswith(PPA_PREFIX):
        return f"{PPA_HOST}/{spec[len(PPA_PREFIX):].strip('/')}"
    return spec.rstrip("/")


def remote_name_for_url(url: str) -> str:
    for scheme in ("http://", "https://"):
        if url.startswith(scheme):
            url = url[len(scheme):]
            break
    return url.replace("/", "_")


def add_remote(root: Path, spec: str) -> Remote:
    """Write a remote descriptor for a URL or PPA shorthand"""
    url = remote_url_from_spec(spec)
    if not url:
        raise BiteyError("Remote URL is empty")

    remote = Remote(name=remote_name_for_url(url), url=url)
    remote_dir = Path(root) / remote.name
    path = remote_dir / REMOTE_FILE
    try:
        remote_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(f"url: {url}\n")
    except OSError as e:
        raise StoreWriteError(str(path), str(e)) from e

    logger.info("Added remote %s -> %s", remote.name, url)
    return remote


class PackageLocator:
    """Finds which remote hosts a package"""

    def __init__(self, client: HttpClient):
        self.client = client

    def fetch_index(self, remote_url: str) -> Set[str]:
        """Package names listed by a remote"""
        text = self.client.get_text(f"{remote_url}/{INDEX_FILE}", "package index")
        return {line.strip() for line in text.splitlines() if line.strip()}

    def locate(self, name: str, remotes: Iterable[Remote]) -> Remote:
        """
        First remote (in the given order) whose index lists the package

        An unreachable remote counts as not having the package.
        """
        searched = 0
        for remote in remotes:
            searched += 1
            try:
                index = self.fetch_index(remote.url)
            except BiteyError as e:
                logger.warning("Skipping remote %s: %s", remote.name, e)
                continue

            if name in index:
                logger.debug("Found %s on remote %s", name, remote.name)
                return remote

        raise PackageNotFoundError(name, searched)
