"""Interfaces comunes para los sinks de eventos de log."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class LogEvent:
    """Evento ya clasificado que llega al sink desde el sistema de logging."""

    level: int
    message: Any
    timestamp: datetime
    metadata: Mapping[str, Any] = field(default_factory=dict)


@runtime_checkable
class EventSink(Protocol):
    """Contrato mínimo para los sinks de eventos."""

    def handle_event(
        self,
        level: int,
        message: Any,
        timestamp: datetime,
        metadata: Mapping[str, Any] | None = None,
    ) -> bool:
        """Procesa un evento; devuelve ``True`` si se escribió."""

    def reconfigure(self, options: Mapping[str, Any]) -> Any:
        """Aplica nuevas opciones sobre las actuales."""

    def current_path(self) -> Optional[str]:
        """Ruta configurada (plantilla), no necesariamente abierta."""

    def close(self) -> None:
        """Libera los recursos asociados al sink."""
