"""Configuration schemas and persistence helpers for the file sink."""

from .schema import LoggingSettings, SinkOptions
from .store import (
    ConfigStore,
    MemoryConfigStore,
    YamlConfigStore,
    load_env_file,
    load_logging_settings,
    options_from_env,
    save_logging_settings,
)

__all__ = [
    "ConfigStore",
    "LoggingSettings",
    "MemoryConfigStore",
    "SinkOptions",
    "YamlConfigStore",
    "load_env_file",
    "load_logging_settings",
    "options_from_env",
    "save_logging_settings",
]
