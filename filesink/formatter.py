"""Compile and render ``$placeholder`` output formats for log events."""

from __future__ import annotations

import re
import socket
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Sequence, Tuple, Union

from .levels import level_name

DEFAULT_FORMAT = "$time $metadata[$level] $message\n"

FORMAT_TOKENS = frozenset(
    {"time", "date", "datetime", "level", "levelpad", "message", "metadata", "node"}
)

REPLACEMENT = "\ufffd"

_TOKEN_PATTERN = re.compile(r"\$([a-z]+)")
_LEVELPAD_WIDTH = max(len(name) for name in ("debug", "info", "warn", "error", "critical"))


@dataclass(frozen=True)
class Token:
    name: str


Part = Union[str, Token]


@dataclass(frozen=True)
class CompiledFormat:
    source: str
    parts: Tuple[Part, ...]


def compile_format(fmt: str) -> CompiledFormat:
    """Split ``fmt`` into literal text and known ``$tokens``."""

    parts: List[Part] = []
    position = 0
    for match in _TOKEN_PATTERN.finditer(fmt):
        name = match.group(1)
        if name not in FORMAT_TOKENS:
            known = ", ".join(sorted(FORMAT_TOKENS))
            raise ValueError(f"unknown format token '${name}' (expected one of: {known})")
        if match.start() > position:
            parts.append(fmt[position : match.start()])
        parts.append(Token(name))
        position = match.end()
    if position < len(fmt):
        parts.append(fmt[position:])
    return CompiledFormat(source=fmt, parts=tuple(parts))


def message_text(message: Any) -> str:
    """Flatten a message payload into text.

    Bytes are decoded with ``surrogateescape`` so that invalid sequences survive
    until the write, where the encoding guard replaces them.
    """

    if isinstance(message, str):
        return message
    if isinstance(message, (bytes, bytearray, memoryview)):
        return bytes(message).decode("utf-8", errors="surrogateescape")
    if isinstance(message, bool):
        return str(message)
    if isinstance(message, int):
        if 0 <= message <= 0x10FFFF:
            return chr(message)
        return REPLACEMENT
    if isinstance(message, (list, tuple)):
        return "".join(message_text(item) for item in message)
    return str(message)


def format_metadata(metadata: Iterable[Tuple[str, Any]]) -> str:
    return "".join(f"{key}={message_text(value)} " for key, value in metadata)


def _format_time(ts: datetime) -> str:
    return f"{ts:%H:%M:%S}.{ts.microsecond // 1000:03d}"


def format_event(
    compiled: CompiledFormat,
    level: int,
    message: Any,
    timestamp: datetime,
    metadata: Sequence[Tuple[str, Any]] | Mapping[str, Any],
) -> str:
    """Render one event according to ``compiled``."""

    if isinstance(metadata, Mapping):
        metadata = list(metadata.items())
    name = level_name(level)
    out: List[str] = []
    for part in compiled.parts:
        if not isinstance(part, Token):
            out.append(part)
        elif part.name == "time":
            out.append(_format_time(timestamp))
        elif part.name == "date":
            out.append(f"{timestamp:%Y-%m-%d}")
        elif part.name == "datetime":
            out.append(f"{timestamp:%Y-%m-%d} {_format_time(timestamp)}")
        elif part.name == "level":
            out.append(name)
        elif part.name == "levelpad":
            out.append(" " * (_LEVELPAD_WIDTH - len(name)))
        elif part.name == "message":
            out.append(message_text(message))
        elif part.name == "metadata":
            out.append(format_metadata(metadata))
        elif part.name == "node":
            out.append(socket.gethostname())
    return "".join(out)
