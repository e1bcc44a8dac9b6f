"""Ciclo de vida del descriptor de archivo activo y detección de rotación."""

from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional, TextIO, Tuple

if TYPE_CHECKING:  # pragma: no cover - hints only
    from filesink.metrics import SinkMetrics

logger = logging.getLogger(__name__)

Identity = Tuple[int, int]


class WriteResult(enum.Enum):
    OK = "ok"
    RETRY = "retry"  # el texto no es representable en la codificación del archivo
    FATAL = "fatal"


def file_identity(path: str) -> Optional[Identity]:
    """Identidad ``(st_dev, st_ino)`` del archivo en ``path`` o ``None``."""

    try:
        stat = os.stat(path)
    except (OSError, ValueError):
        return None
    return (stat.st_dev, stat.st_ino)


class FileHandleManager:
    """Mantiene el par (archivo abierto, identidad) de la ruta activa.

    Estados: cerrado (``handle is None``) y abierto (identidad cacheada). Antes
    de cada escritura :meth:`ensure` compara la identidad en disco de la ruta
    con la cacheada; si difieren (archivo rotado, borrado o ruta nueva) se
    cierra el descriptor y se reabre.
    """

    def __init__(self, *, encoding: str = "utf-8", metrics: "SinkMetrics | None" = None) -> None:
        self.encoding = encoding
        self._metrics = metrics
        self._fh: Optional[TextIO] = None
        self._identity: Optional[Identity] = None
        self._path: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    # API pública -------------------------------------------------------------
    def ensure(self, path: str) -> bool:
        """Garantiza un descriptor abierto que corresponda a ``path`` en disco."""

        if self._fh is not None:
            if self._path == path and self._identity is not None and file_identity(path) == self._identity:
                return True
            if self._path == path:
                logger.debug("Identidad de %s cambió; se reabre el archivo", path)
                self._record("rotations")
            self.close()
        return self.open(path)

    def open(self, path: str) -> bool:
        """Abre ``path`` en modo append; ante cualquier error queda cerrado."""

        self.close()
        try:
            directory = os.path.dirname(path)
            if directory:
                Path(directory).mkdir(parents=True, exist_ok=True)
            fh = open(path, "a", encoding=self.encoding)
        except (OSError, ValueError) as exc:  # ValueError: byte nulo en la ruta
            logger.debug("No se pudo abrir %s: %s", path, exc)
            self._record("open_failures")
            return False
        try:
            stat = os.fstat(fh.fileno())
        except OSError as exc:
            logger.debug("No se pudo obtener la identidad de %s: %s", path, exc)
            fh.close()
            self._record("open_failures")
            return False
        self._fh = fh
        self._identity = (stat.st_dev, stat.st_ino)
        self._path = path
        self._record("opens")
        return True

    def write(self, text: str) -> WriteResult:
        if self._fh is None:
            return WriteResult.FATAL
        try:
            self._fh.write(text)
            self._fh.flush()
        except UnicodeError as exc:
            logger.debug("Texto no codificable en %s: %s", self._path, exc)
            return WriteResult.RETRY
        except (OSError, ValueError) as exc:
            logger.debug("Fallo de escritura en %s: %s", self._path, exc)
            return WriteResult.FATAL
        return WriteResult.OK

    def close(self) -> None:
        fh = self._fh
        self._fh = None
        self._identity = None
        self._path = None
        if fh is None:
            return
        try:
            fh.close()
        except (OSError, UnicodeError) as exc:  # pragma: no cover - best effort
            logger.debug("Error al cerrar el archivo de log: %s", exc)

    # Métodos internos --------------------------------------------------------
    def _record(self, counter: str) -> None:
        if self._metrics is not None:
            self._metrics.increment(counter)
