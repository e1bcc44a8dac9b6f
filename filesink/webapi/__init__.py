"""FastAPI application exposing the installed file sinks."""

from __future__ import annotations

from fastapi import FastAPI

from .sinks import router as sinks_router

app = FastAPI(title="filesink admin API", version="1.0.0")

app.include_router(sinks_router)


__all__ = ["app"]
