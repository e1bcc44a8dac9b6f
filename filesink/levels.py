"""Level names understood by the sink, mapped onto the ``logging`` scale."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_CANONICAL: Dict[int, str] = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


def normalize_level(value: Any) -> Optional[int]:
    """Return the numeric level for ``value``; ``None``/empty means unset."""

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"'level' must be a level name or integer, got {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("'level' must be >= 0")
        return value
    text = str(value).strip().lower().lstrip(":")
    if text.isdigit():
        return int(text)
    try:
        return LEVELS[text]
    except KeyError:
        known = ", ".join(sorted(LEVELS))
        raise ValueError(f"unknown level '{value}' (expected one of: {known})") from None


def level_name(level: int) -> str:
    """Lowercase name of ``level``; unnamed levels round down to the nearest one."""

    if level in _CANONICAL:
        return _CANONICAL[level]
    candidates = [known for known in _CANONICAL if known <= level]
    if not candidates:
        return _CANONICAL[logging.DEBUG]
    return _CANONICAL[max(candidates)]


def accept(level: int, min_level: Optional[int]) -> bool:
    return min_level is None or level >= min_level


def serialize_level(level: Optional[int]) -> Any:
    """Name for the known levels, the raw integer for custom ones."""

    if level is None:
        return None
    return _CANONICAL.get(level, level)
