"""Contrato del ejecutor de requests autenticado."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx


@runtime_checkable
class RequestExecutor(Protocol):
    """Capacidad HTTP ya autenticada.

    Reglas de diseño:
    - `execute` devuelve la respuesta *sin leer* el body (stream); quien la
      recibe decide si la lee o la cierra.
    - Credenciales, timeouts y cancelación son responsabilidad del ejecutor.
    """

    async def execute(self, request: httpx.Request) -> httpx.Response:
        ...

    async def aclose(self) -> None:
        ...
