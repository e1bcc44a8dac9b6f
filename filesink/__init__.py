"""Date-templated, rotation-aware file sink for the ``logging`` package."""

from .config import LoggingSettings, SinkOptions
from .handler import FileSinkHandler
from .registry import install_handlers, registry
from .sinks import FileSink, LogEvent

__version__ = "1.0.0"

__all__ = [
    "FileSink",
    "FileSinkHandler",
    "LogEvent",
    "LoggingSettings",
    "SinkOptions",
    "install_handlers",
    "registry",
]
