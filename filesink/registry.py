"""Process-local lookup of the installed file sink handlers by name."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, List

from filesink.config.schema import LoggingSettings
from filesink.config.store import ConfigStore
from filesink.handler import FileSinkHandler
from filesink.sinks import build_sinks


class SinkRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._handlers: Dict[str, FileSinkHandler] = {}

    def register(self, handler: FileSinkHandler) -> None:
        with self._lock:
            self._handlers[handler.sink.name] = handler

    def unregister(self, name: str) -> FileSinkHandler | None:
        with self._lock:
            return self._handlers.pop(name, None)

    def get(self, name: str) -> FileSinkHandler:
        with self._lock:
            return self._handlers[name]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._handlers)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()


registry = SinkRegistry()


def install_handlers(
    settings: LoggingSettings,
    target: logging.Logger | None = None,
    *,
    store: ConfigStore | None = None,
    sinks: SinkRegistry | None = None,
) -> Dict[str, FileSinkHandler]:
    """Attach one :class:`FileSinkHandler` per configured backend to ``target``.

    Each handler is also registered in ``sinks`` (the module registry by
    default) so the web API can find it by name.
    """

    target = target or logging.getLogger()
    sinks = sinks if sinks is not None else registry
    handlers: Dict[str, FileSinkHandler] = {}
    for name, sink in build_sinks(settings, store).items():
        handler = FileSinkHandler(sink)
        target.addHandler(handler)
        sinks.register(handler)
        handlers[name] = handler
    return handlers
