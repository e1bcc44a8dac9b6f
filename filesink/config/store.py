"""Helpers to load, validate and persist sink configuration."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

import yaml
from dotenv import dotenv_values

from .schema import LoggingSettings, SinkOptions

CONFIG_DIR = Path(__file__).resolve().parent

ENV_PREFIX = "FILESINK_"


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at {path}, found {type(data).__name__}")
    return data


def _write_yaml(path: Path, payload: Mapping[str, Any]):
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(dict(payload), fh, sort_keys=False, allow_unicode=True)
    tmp_path.replace(path)


def load_logging_settings(path: Optional[Path] = None) -> LoggingSettings:
    """Read and validate the named backends from logging.yaml."""

    cfg_path = path or CONFIG_DIR / "logging.yaml"
    raw = _read_yaml(cfg_path)
    return LoggingSettings.from_mapping(raw)


def save_logging_settings(settings: LoggingSettings, path: Optional[Path] = None):
    """Persist the named backends to logging.yaml."""

    cfg_path = path or CONFIG_DIR / "logging.yaml"
    _write_yaml(cfg_path, settings.to_dict())


def options_from_env(env: Mapping[str, Any], prefix: str = ENV_PREFIX) -> SinkOptions:
    """Create sink options from ``FILESINK_*`` environment variables."""

    payload: Dict[str, Any] = {}
    for key in ("path", "level", "metadata", "format", "utc"):
        value = env.get(f"{prefix}{key.upper()}")
        if value is None:
            continue
        if key == "format":
            # Allow escaped newlines so the format fits on one env line.
            value = str(value).replace("\\n", "\n")
        payload[key] = value
    return SinkOptions.from_mapping(payload)


def load_env_file(path: Path) -> Mapping[str, str]:
    """Load key/value pairs from a dotenv file."""

    values = dotenv_values(str(path))
    return {k: v for k, v in values.items() if v is not None}


@runtime_checkable
class ConfigStore(Protocol):
    """Key-value store holding the merged options of each named sink."""

    def get(self, name: str) -> Dict[str, Any]:
        """Return the stored options for ``name`` (empty when unknown)."""

    def put(self, name: str, options: Mapping[str, Any]) -> None:
        """Replace the stored options for ``name``."""


class MemoryConfigStore:
    """In-process store; options do not survive a restart."""

    def __init__(self, initial: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = {
            name: dict(options) for name, options in (initial or {}).items()
        }

    def get(self, name: str) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data.get(name, {}))

    def put(self, name: str, options: Mapping[str, Any]) -> None:
        with self._lock:
            self._data[name] = dict(options)


class YamlConfigStore:
    """Store backed by the ``backends:`` mapping of a logging.yaml file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else CONFIG_DIR / "logging.yaml"
        self._lock = threading.Lock()

    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        return _read_yaml(self.path)

    def get(self, name: str) -> Dict[str, Any]:
        with self._lock:
            backends = self._load_raw().get("backends") or {}
        options = backends.get(name) if isinstance(backends, Mapping) else None
        return dict(options) if isinstance(options, Mapping) else {}

    def put(self, name: str, options: Mapping[str, Any]) -> None:
        with self._lock:
            raw = self._load_raw()
            backends = raw.get("backends")
            if not isinstance(backends, dict):
                backends = {}
            backends[name] = dict(options)
            raw["backends"] = backends
            _write_yaml(self.path, raw)
