"""Sink que añade eventos formateados a un archivo con ruta por fecha/hora."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from filesink.config.schema import SinkOptions
from filesink.config.store import ConfigStore
from filesink.formatter import CompiledFormat, compile_format, format_event
from filesink.guard import sanitize
from filesink.levels import accept
from filesink.metrics import SinkMetrics
from filesink.template import Template, compile_template, render_path

from .base import EventSink, LogEvent
from .handle import FileHandleManager, WriteResult

logger = logging.getLogger(__name__)


class FileSink(EventSink):
    """Escribe eventos en la ruta calculada y reabre el archivo si fue rotado.

    Sin ``path`` configurado el sink descarta todo en silencio. Ningún error de
    disco o de codificación se propaga al llamador: en el peor caso se pierde
    el evento afectado.
    """

    def __init__(
        self,
        options: SinkOptions | None = None,
        *,
        name: str = "file",
        store: ConfigStore | None = None,
        metrics: SinkMetrics | None = None,
    ) -> None:
        self.name = name
        self._store = store
        self.metrics = metrics or SinkMetrics(logger=logging.getLogger(f"{__name__}.metrics"))
        self._handle = FileHandleManager(metrics=self.metrics)
        self.options = SinkOptions()
        self._template: Optional[Template] = None
        self._format: CompiledFormat = compile_format(self.options.format)
        self._apply(options or SinkOptions())

    @classmethod
    def initialize(cls, name: str, store: ConfigStore | None = None, **kwargs: Any) -> "FileSink":
        """Construye el sink con las opciones guardadas para ``name``."""

        stored = store.get(name) if store is not None else {}
        return cls(SinkOptions.from_mapping(stored), name=name, store=store, **kwargs)

    # API del EventSink -------------------------------------------------------
    def reconfigure(self, options: Mapping[str, Any] | SinkOptions) -> SinkOptions:
        """Fusiona ``options`` con las actuales y reinicia el estado.

        Las opciones inválidas lanzan ``ValueError`` sin tocar el estado vigente.
        """

        merged = self.options.merge(options)
        if self._store is not None:
            self._store.put(self.name, merged.to_dict())
        self._handle.close()
        self._apply(merged)
        logger.debug("Sink '%s' reconfigurado con ruta %s", self.name, merged.path)
        return merged

    def current_path(self) -> Optional[str]:
        return self.options.path

    def handle(self, event: LogEvent) -> bool:
        return self.handle_event(event.level, event.message, event.timestamp, event.metadata)

    def handle_event(
        self,
        level: int,
        message: Any,
        timestamp: datetime,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        if not accept(level, self.options.level):
            self.metrics.increment("events_filtered")
            return False
        if self._template is None:
            return False

        path = render_path(self._template, timestamp)
        if not self._handle.ensure(path):
            self.metrics.increment("events_dropped")
            return False

        try:
            text = format_event(self._format, level, message, timestamp, self._select_metadata(metadata))
        except Exception:  # pragma: no cover - __str__ de objetos arbitrarios
            logger.debug("No se pudo formatear el evento para %s", path, exc_info=True)
            self.metrics.increment("events_dropped")
            return False

        if self._write(path, text):
            self.metrics.increment("events_written")
            return True
        self.metrics.increment("events_dropped")
        return False

    def close(self) -> None:
        self._handle.close()

    # API auxiliar ------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self._handle.is_open

    @property
    def open_path(self) -> Optional[str]:
        """Ruta concreta del archivo abierto actualmente, si lo hay."""

        return self._handle.path

    # Métodos internos --------------------------------------------------------
    def _apply(self, options: SinkOptions) -> None:
        template = compile_template(options.path) if options.path is not None else None
        fmt = compile_format(options.format)
        self.options = options
        self._template = template
        self._format = fmt

    def _select_metadata(self, metadata: Mapping[str, Any] | None) -> List[Tuple[str, Any]]:
        if not metadata or not self.options.metadata:
            return []
        if not isinstance(metadata, Mapping):
            metadata = dict(metadata)
        return [(key, metadata[key]) for key in self.options.metadata if key in metadata]

    def _write(self, path: str, text: str) -> bool:
        payload = text
        for attempt in range(2):
            result = self._handle.write(payload)
            if result is WriteResult.OK:
                return True
            if result is WriteResult.FATAL or attempt:
                break
            self.metrics.increment("encoding_retries")
            payload = sanitize(payload)
            if not self._handle.open(path):
                break
        self.metrics.increment("write_failures")
        self._handle.close()
        return False
