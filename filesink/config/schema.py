"""Typed configuration models implemented with dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from filesink.formatter import DEFAULT_FORMAT, compile_format
from filesink.levels import normalize_level, serialize_level
from filesink.template import compile_template

OPTION_KEYS = ("path", "level", "metadata", "format", "utc")


def _as_str(value: Any, field_name: str, *, optional: bool = False) -> Optional[str]:
    if value is None:
        if optional:
            return None
        raise ValueError(f"'{field_name}' is required")
    text = str(value).strip()
    if not text and not optional:
        raise ValueError(f"'{field_name}' must not be empty")
    return text or None


def _as_path(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    if not text:
        return None
    if "\x00" in text:
        raise ValueError("'path' must not contain NUL characters")
    return text


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def _as_str_list(value: Any, field_name: str) -> List[str]:
    if value in (None, ""):
        return []
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, Sequence):
        items = [str(item).strip().lstrip(":") for item in value]
    else:
        raise ValueError(f"'{field_name}' must be a list or a comma separated string")
    result: List[str] = []
    for item in items:
        if item and item not in result:
            result.append(item)
    return result


@dataclass
class SinkOptions:
    """Options of a single file backend; every field is optional."""

    path: Optional[str] = None
    level: Optional[int] = None
    metadata: List[str] = field(default_factory=list)
    format: str = DEFAULT_FORMAT
    utc: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "SinkOptions":
        if not data:
            return cls()
        unknown = sorted(set(data) - set(OPTION_KEYS))
        if unknown:
            raise ValueError(f"unknown sink option(s): {', '.join(unknown)}")
        path = _as_path(data.get("path"))
        if path is not None:
            compile_template(path)
        level = normalize_level(data.get("level"))
        metadata = _as_str_list(data.get("metadata"), "metadata")
        fmt_raw = data.get("format")
        fmt = DEFAULT_FORMAT if fmt_raw is None else str(fmt_raw)
        compile_format(fmt)
        utc = _as_bool(data.get("utc"), False)
        return cls(path=path, level=level, metadata=metadata, format=fmt, utc=utc)

    def merge(self, overrides: Mapping[str, Any] | "SinkOptions") -> "SinkOptions":
        """Return new options with ``overrides`` applied over these ones."""

        if isinstance(overrides, SinkOptions):
            overrides = overrides.to_dict()
        payload: Dict[str, Any] = self.to_dict()
        payload.update(overrides)
        return SinkOptions.from_mapping(payload)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "level": serialize_level(self.level),
            "metadata": list(self.metadata),
            "format": self.format,
            "utc": self.utc,
        }


@dataclass
class LoggingSettings:
    """Named file backends, as stored in ``logging.yaml``."""

    backends: Dict[str, SinkOptions] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "LoggingSettings":
        if not data:
            return cls()
        raw = data.get("backends") or {}
        if not isinstance(raw, Mapping):
            raise ValueError("'backends' must be a mapping of backend name to options")
        backends: Dict[str, SinkOptions] = {}
        for name, options in raw.items():
            key = _as_str(name, "backends[].name")
            if options is not None and not isinstance(options, Mapping):
                raise ValueError(f"backends.{key} must be a mapping")
            try:
                backends[key] = SinkOptions.from_mapping(options)
            except ValueError as exc:
                raise ValueError(f"backends.{key}: {exc}") from exc
        return cls(backends=backends)

    def to_dict(self) -> Dict[str, Any]:
        return {"backends": {name: opts.to_dict() for name, opts in self.backends.items()}}
