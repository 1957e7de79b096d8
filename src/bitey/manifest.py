"""
Pointer and manifest documents

A remote serves a small pointer (``<name>.yml``) whose only field is the URL
of the full manifest. Both are YAML. Scalars are read as strings so that a
version such as ``1.10`` is never turned into a float.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import MalformedDocumentError

_NULLS = {"", "~", "null", "Null", "NULL"}


def load_yaml(text: str, source: str, what: str) -> Any:
    """Parse YAML with every scalar kept as a string"""
    try:
        return yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise MalformedDocumentError(source, what, f"invalid YAML ({e})") from e


def _optional(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and value.strip() in _NULLS):
        return None
    return value


@dataclass(frozen=True)
class Pointer:
    """Indirection document: package name -> manifest URL"""
    url: str
    raw: str

    @classmethod
    def parse(cls, text: str, source: str = "<pointer>") -> 'Pointer':
        data = load_yaml(text, source, "pointer")
        if not isinstance(data, dict):
            raise MalformedDocumentError(source, "pointer", "expected a mapping")

        url = _optional(data.get("url"))
        if not isinstance(url, str):
            raise MalformedDocumentError(source, "pointer", "missing 'url' field")

        return cls(url=url.strip(), raw=text)


@dataclass
class SourceUrls:
    """Where a package's files live"""
    raw: Optional[str] = None
    package: Optional[str] = None

    @property
    def archive_url(self) -> Optional[str]:
        return self.package


@dataclass
class Manifest:
    """Full package description"""
    name: str
    version: str
    install_commands: str
    maintainer: str = ""
    description: str = ""
    source: SourceUrls = field(default_factory=SourceUrls)
    dependencies: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str, source: str = "<manifest>") -> 'Manifest':
        """Parse manifest YAML text"""
        return cls.from_dict(load_yaml(text, source, "manifest"), source)

    @classmethod
    def load(cls, path: Path) -> 'Manifest':
        """Load a manifest from a file"""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(str(path), "manifest", f"not valid UTF-8 ({e.reason})") from e
        return cls.parse(text, str(path))

    @classmethod
    def from_dict(cls, data: Any, source: str = "<manifest>") -> 'Manifest':
        """Create manifest from dictionary"""
        if not isinstance(data, dict):
            raise MalformedDocumentError(source, "manifest", "expected a mapping")

        def fail(reason: str) -> MalformedDocumentError:
            return MalformedDocumentError(source, "manifest", reason, package=data.get("name"))

        for key in ("name", "version"):
            if not isinstance(_optional(data.get(key)), str):
                raise fail(f"missing '{key}' field")

        install = data.get("install")
        if not isinstance(install, dict) or not isinstance(install.get("commands"), str):
            raise fail("missing 'install.commands' field")

        source_data = data.get("source") or {}
        if not isinstance(source_data, dict):
            raise fail("'source' must be a mapping")

        deps = data.get("dependencies")
        if _optional(deps) is None:
            deps = []
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise fail("'dependencies' must be a list of package names")

        return cls(
            name=data["name"],
            version=data["version"],
            install_commands=install["commands"],
            maintainer=data.get("maintainer") or "",
            description=data.get("description") or "",
            source=SourceUrls(
                raw=_optional(source_data.get("raw")),
                package=_optional(source_data.get("package"))
            ),
            dependencies=[d.strip() for d in deps if d.strip()]
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary in the on-the-wire layout"""
        data: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "maintainer": self.maintainer,
            "description": self.description,
            "source": {
                "raw": self.source.raw,
                "package": self.source.package
            },
            "install": {"commands": self.install_commands}
        }
        if self.dependencies:
            data["dependencies"] = list(self.dependencies)
        return data

    def dump(self) -> str:
        """Serialize to YAML"""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    def save(self, path: Path) -> None:
        """Save manifest to a file"""
        with open(path, 'w') as f:
            f.write(self.dump())
