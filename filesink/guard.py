"""Saneado de texto para que un fallo de codificación no corte el sink."""

from __future__ import annotations

from typing import Any, List

REPLACEMENT = "\ufffd"

_MAX_CODEPOINT = 0x10FFFF
_SURROGATES = range(0xD800, 0xE000)


def _clean_str(text: str) -> str:
    if not any(ord(ch) in _SURROGATES for ch in text):
        return text
    return "".join(REPLACEMENT if ord(ch) in _SURROGATES else ch for ch in text)


def _clean_codepoint(value: int) -> str:
    if 0 <= value <= _MAX_CODEPOINT and value not in _SURROGATES:
        return chr(value)
    return REPLACEMENT


def _collect(data: Any, out: List[str]) -> None:
    if isinstance(data, str):
        out.append(_clean_str(data))
    elif isinstance(data, (bytes, bytearray, memoryview)):
        # Cada byte inválido queda como su propio U+FFFD.
        out.append(_clean_str(bytes(data).decode("utf-8", errors="surrogateescape")))
    elif isinstance(data, bool):
        out.append(REPLACEMENT)
    elif isinstance(data, int):
        out.append(_clean_codepoint(data))
    elif isinstance(data, (list, tuple)):
        for item in data:
            _collect(item, out)
    else:
        out.append(REPLACEMENT)


def sanitize(data: Any) -> str:
    """Devuelve ``data`` como texto UTF-8 válido.

    Acepta ``str``, ``bytes``, enteros (puntos de código) y listas/tuplas
    anidadas de ellos. Surrogates sueltos, secuencias de bytes inválidas,
    enteros fuera de rango y cualquier otro elemento se sustituyen por
    U+FFFD. Nunca lanza y es idempotente.
    """

    out: List[str] = []
    _collect(data, out)
    return "".join(out)


def is_valid_text(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
