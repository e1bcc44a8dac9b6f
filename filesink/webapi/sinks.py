"""Endpoints to inspect and reconfigure the installed file sinks."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import anyio
from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, Field

from filesink.config.schema import OPTION_KEYS
from filesink.handler import FileSinkHandler
from filesink.registry import SinkRegistry, registry

from .auth import require_token

router = APIRouter(prefix="/sinks", tags=["sinks"])

_config_lock = asyncio.Lock()


class SinkSummary(BaseModel):
    name: str
    path: str | None = Field(description="Plantilla de ruta configurada")
    open_path: str | None = Field(None, description="Archivo abierto actualmente")
    level: str | int | None = None


class PathResponse(BaseModel):
    name: str
    path: str | None


def get_registry() -> SinkRegistry:
    return registry


def _lookup(sinks: SinkRegistry, name: str) -> FileSinkHandler:
    try:
        return sinks.get(name)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sink '{name}' no registrado",
        ) from None


def _summarize(handler: FileSinkHandler) -> SinkSummary:
    options = handler.sink.options.to_dict()
    return SinkSummary(
        name=handler.sink.name,
        path=handler.path,
        open_path=handler.sink.open_path,
        level=options["level"],
    )


@router.get("", response_model=List[SinkSummary], dependencies=[Depends(require_token)])
def list_sinks(sinks: SinkRegistry = Depends(get_registry)) -> List[SinkSummary]:
    return [_summarize(sinks.get(name)) for name in sinks.names()]


@router.get("/{name}/path", response_model=PathResponse, dependencies=[Depends(require_token)])
def get_sink_path(name: str, sinks: SinkRegistry = Depends(get_registry)) -> PathResponse:
    """Return the configured (not necessarily open) path template."""

    handler = _lookup(sinks, name)
    return PathResponse(name=name, path=handler.path)


@router.get("/{name}/config", dependencies=[Depends(require_token)])
def get_sink_config(name: str, sinks: SinkRegistry = Depends(get_registry)) -> Dict[str, Any]:
    return _lookup(sinks, name).sink.options.to_dict()


@router.put("/{name}/config", dependencies=[Depends(require_token)])
async def update_sink_config(
    name: str,
    payload: Dict[str, Any] = Body(..., description="Opciones parciales del sink"),
    sinks: SinkRegistry = Depends(get_registry),
) -> Dict[str, Any]:
    """Merge ``payload`` into the sink options and re-apply them."""

    handler = _lookup(sinks, name)
    unknown = set(payload) - set(OPTION_KEYS)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Campos no soportados: {', '.join(sorted(unknown))}",
        )

    async with _config_lock:
        try:
            options = await anyio.to_thread.run_sync(lambda: handler.configure(**payload))
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return options.to_dict()


@router.get("/{name}/metrics", dependencies=[Depends(require_token)])
def get_sink_metrics(name: str, sinks: SinkRegistry = Depends(get_registry)) -> Dict[str, int]:
    return _lookup(sinks, name).sink.metrics.snapshot()
