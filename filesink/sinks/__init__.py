"""Registro de sinks disponibles y utilidades de construcción."""

from __future__ import annotations

import logging
from typing import Dict

from filesink.config.schema import LoggingSettings
from filesink.config.store import ConfigStore

from .base import EventSink, LogEvent
from .file import FileSink
from .handle import FileHandleManager, WriteResult, file_identity

logger = logging.getLogger(__name__)

__all__ = [
    "EventSink",
    "FileHandleManager",
    "FileSink",
    "LogEvent",
    "WriteResult",
    "build_sinks",
    "file_identity",
]


def build_sinks(settings: LoggingSettings, store: ConfigStore | None = None) -> Dict[str, FileSink]:
    """Inicializa un :class:`FileSink` por cada backend con nombre.

    ``store`` queda asociado a cada sink para persistir reconfiguraciones.
    """

    sinks: Dict[str, FileSink] = {}
    for name, options in settings.backends.items():
        sink = FileSink(options, name=name, store=store)
        if sink.current_path() is None:
            logger.info("Backend '%s' sin 'path' configurado; descartará todos los eventos.", name)
        sinks[name] = sink
    return sinks
