"""
Configuration for the Bitey package manager

Settings come from a JSON file (first match of the default locations, or an
explicit path) with environment overrides for the two directory roots.
"""

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigError

DEFAULT_STORE_ROOT = Path("/opt/bitey/Chocolaterie")
DEFAULT_REMOTES_ROOT = Path("/opt/bitey/Chocobitey/remotes")


@dataclass(frozen=True)
class Config:
    """Resolved settings, passed explicitly into every component"""
    store_root: Path = DEFAULT_STORE_ROOT
    remotes_root: Path = DEFAULT_REMOTES_ROOT
    insecure: bool = False
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    script_timeout: Optional[float] = None

    @property
    def timeout(self) -> Tuple[float, float]:
        """(connect, read) timeout tuple as requests expects it"""
        return (self.connect_timeout, self.read_timeout)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], origin: str = "<config>") -> 'Config':
        """Create from the camelCase JSON layout"""
        if not isinstance(data, dict):
            raise ConfigError(f"{origin}: expected a JSON object")

        timeout = data.get("timeout", {})
        if not isinstance(timeout, dict):
            raise ConfigError(f"{origin}: 'timeout' must be an object")

        try:
            return cls(
                store_root=Path(data.get("storeRoot", DEFAULT_STORE_ROOT)).expanduser(),
                remotes_root=Path(data.get("remotesRoot", DEFAULT_REMOTES_ROOT)).expanduser(),
                insecure=_as_bool(data.get("insecure", False), "insecure", origin),
                connect_timeout=float(timeout.get("connect", 10.0)),
                read_timeout=float(timeout.get("read", 60.0)),
                script_timeout=(
                    float(data["scriptTimeout"])
                    if data.get("scriptTimeout") is not None else None
                )
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{origin}: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data: Dict[str, Any] = {
            "storeRoot": str(self.store_root),
            "remotesRoot": str(self.remotes_root),
            "insecure": self.insecure,
            "timeout": {"connect": self.connect_timeout, "read": self.read_timeout}
        }
        if self.script_timeout is not None:
            data["scriptTimeout"] = self.script_timeout
        return data


def _as_bool(value: Any, key: str, origin: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{origin}: '{key}' must be true or false")
    return value


def default_config_paths() -> List[Path]:
    """Locations searched when no explicit config path is given"""
    return [
        Path.home() / ".bitey" / "config.json",
        Path("/etc/bitey/config.json"),
        Path.cwd() / ".biteyrc"
    ]


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None
) -> Config:
    """Load configuration, falling back to defaults when no file exists"""
    env = os.environ if environ is None else environ

    if not config_path and env.get("BITEY_CONFIG"):
        config_path = Path(env["BITEY_CONFIG"])

    if config_path and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    if not config_path:
        for path in default_config_paths():
            if path.exists():
                config_path = path
                break

    config = Config()
    if config_path:
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read {config_path}: {e}") from e
        config = Config.from_dict(data, str(config_path))

    if env.get("BITEY_STORE"):
        config = replace(config, store_root=Path(env["BITEY_STORE"]))
    if env.get("BITEY_REMOTES"):
        config = replace(config, remotes_root=Path(env["BITEY_REMOTES"]))

    return config
