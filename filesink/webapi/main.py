"""Uvicorn bootstrap for the filesink admin API."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import uvicorn

from filesink.config.store import YamlConfigStore, load_logging_settings
from filesink.registry import install_handlers

from . import app

logger = logging.getLogger(__name__)


def main() -> None:
    config_path = os.environ.get("FILESINK_CONFIG")
    if config_path:
        path = Path(config_path)
        settings = load_logging_settings(path)
        install_handlers(settings, store=YamlConfigStore(path))
        logger.info("Installed %d file backend(s) from %s", len(settings.backends), path)

    host = os.environ.get("FILESINK_WEBAPI_HOST", "127.0.0.1")
    port = int(os.environ.get("FILESINK_WEBAPI_PORT", "8000"))
    reload_flag = os.environ.get("FILESINK_WEBAPI_RELOAD", "0")
    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=reload_flag.lower() in {"1", "true", "yes"},
        log_level=os.environ.get("FILESINK_WEBAPI_LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
