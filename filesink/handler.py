"""Bridge between the standard ``logging`` package and :class:`FileSink`."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from filesink.config.schema import SinkOptions
from filesink.config.store import ConfigStore
from filesink.sinks import FileSink

_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

_EXCEPTION_FORMATTER = logging.Formatter()


def record_metadata(record: logging.LogRecord) -> Dict[str, Any]:
    """Metadata available to the ``metadata`` option for ``record``.

    Besides the standard keys, any ``extra=`` attribute is included.
    """

    metadata: Dict[str, Any] = {
        "logger": record.name,
        "module": record.module,
        "function": record.funcName,
        "line": record.lineno,
        "file": record.pathname,
        "pid": record.process,
        "thread": record.threadName,
    }
    for key, value in record.__dict__.items():
        if key not in _STANDARD_ATTRS and not key.startswith("_"):
            metadata[key] = value
    return metadata


class FileSinkHandler(logging.Handler):
    """``logging.Handler`` that delivers records to a :class:`FileSink`.

    The handler lock serializes event delivery and reconfiguration, so the sink
    never observes a configuration change in the middle of a write. Records
    from this package's own loggers are not fed back into the sink.
    """

    def __init__(
        self,
        sink: Optional[FileSink] = None,
        *,
        name: str = "file",
        store: ConfigStore | None = None,
        **options: Any,
    ) -> None:
        super().__init__(level=logging.NOTSET)
        if sink is None:
            sink = FileSink.initialize(name, store)
            if options:
                sink.reconfigure(options)
        elif options:
            sink.reconfigure(options)
        self.sink = sink
        self.set_name(sink.name)

    @property
    def path(self) -> Optional[str]:
        return self.sink.current_path()

    def configure(self, **options: Any) -> SinkOptions:
        self.acquire()
        try:
            return self.sink.reconfigure(options)
        finally:
            self.release()

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "filesink" or record.name.startswith("filesink."):
            return False
        return bool(super().filter(record))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.sink.options.utc:
                timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
            else:
                timestamp = datetime.fromtimestamp(record.created)
            message = record.getMessage()
            if record.exc_info:
                message = f"{message}\n{_EXCEPTION_FORMATTER.formatException(record.exc_info)}"
            elif record.exc_text:
                message = f"{message}\n{record.exc_text}"
            self.sink.handle_event(record.levelno, message, timestamp, record_metadata(record))
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        self.acquire()
        try:
            self.sink.close()
        finally:
            self.release()
        super().close()
