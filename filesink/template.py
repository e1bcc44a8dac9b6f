"""Compilación y evaluación de rutas con marcadores ``$nombre`` de fecha/hora."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Tuple, Union

PLACEHOLDER_PATTERN = re.compile(r"\$([a-z]+)")


class TemplateError(ValueError):
    """Se lanza cuando una ruta usa un marcador no reconocido."""


@dataclass(frozen=True)
class Placeholder:
    name: str


Segment = Union[str, Placeholder]


@dataclass(frozen=True)
class Template:
    """Secuencia inmutable de literales y marcadores, en orden."""

    source: str
    segments: Tuple[Segment, ...]

    @property
    def is_static(self) -> bool:
        return not any(isinstance(segment, Placeholder) for segment in self.segments)

    @property
    def placeholders(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self.segments if isinstance(s, Placeholder))


def pad2(value: int) -> str:
    if value < 10:
        return f"0{value}"
    return f"{value}"


def format_date(ts: datetime) -> str:
    return f"{ts.year}{pad2(ts.month)}{pad2(ts.day)}"


def format_time(ts: datetime) -> str:
    return f"{pad2(ts.hour)}{pad2(ts.minute)}{pad2(ts.second)}"


_RENDERERS: Dict[str, Callable[[datetime], str]] = {
    "date": format_date,
    "year": lambda ts: pad2(ts.year),
    "month": lambda ts: pad2(ts.month),
    "day": lambda ts: pad2(ts.day),
    "time": format_time,
    "hour": lambda ts: pad2(ts.hour),
    "min": lambda ts: pad2(ts.minute),
    "sec": lambda ts: pad2(ts.second),
}

PLACEHOLDERS: FrozenSet[str] = frozenset(_RENDERERS)


def compile_template(path: str, *, strict: bool = True) -> Template:
    """Divide ``path`` en segmentos literales y marcadores.

    Con ``strict`` los nombres fuera de :data:`PLACEHOLDERS` lanzan
    :class:`TemplateError`; sin él se conservan y se evalúan como cadena vacía.
    """

    segments = []
    position = 0
    for match in PLACEHOLDER_PATTERN.finditer(path):
        name = match.group(1)
        if strict and name not in PLACEHOLDERS:
            known = ", ".join(sorted(PLACEHOLDERS))
            raise TemplateError(f"marcador desconocido '${name}' en '{path}' (válidos: {known})")
        if match.start() > position:
            segments.append(path[position : match.start()])
        segments.append(Placeholder(name))
        position = match.end()
    if position < len(path):
        segments.append(path[position:])
    return Template(source=path, segments=tuple(segments))


def render_path(template: Template, timestamp: datetime) -> str:
    """Construye la ruta concreta de ``template`` para ``timestamp``."""

    parts = []
    for segment in template.segments:
        if isinstance(segment, Placeholder):
            renderer = _RENDERERS.get(segment.name)
            parts.append(renderer(timestamp) if renderer is not None else "")
        else:
            parts.append(segment)
    return "".join(parts)
