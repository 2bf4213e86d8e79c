"""Errores del Core.

Taxonomía:
- `GraphqlClientError` agrupa los tres fallos que sintetiza el pipeline
  (`HttpError`, `CharacterSetError`, `DecodingError`). Son mutuamente
  excluyentes: cada llamada fallida produce exactamente uno.
- El resto (`ResponseTooLargeError`, errores de credenciales, errores de
  `httpx`) viene de capas inferiores y se propaga sin reclasificar.
"""

from __future__ import annotations

import httpx


class GraphqlClientError(Exception):
    """Fallo definido al consultar y decodificar un objeto de la API GraphQL."""


class HttpError(GraphqlClientError):
    """La API devolvió un status distinto de 200 OK.

    Se adjunta la respuesta ya cerrada: status y headers se pueden inspeccionar,
    el body no se lee nunca.
    """

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"GraphQL API returned HTTP {response.status_code}")

    @property
    def status_code(self) -> int:
        return self.response.status_code


class CharacterSetError(GraphqlClientError):
    """El body no encaja con el tipo y tampoco es UTF-8 válido."""

    def __init__(self, body: bytes) -> None:
        self.body = body
        super().__init__(f"Response body is not valid UTF-8 ({len(body)} bytes)")


class DecodingError(GraphqlClientError):
    """El body es texto válido pero no se puede decodificar en el tipo pedido.

    Se adjunta el texto del body para depuración (p.ej. un sobre `errors`
    de GraphQL en lugar de `data`).
    """

    def __init__(self, body: str) -> None:
        self.body = body
        super().__init__("Response body does not match the requested type")


class ResponseTooLargeError(Exception):
    """El upstream envió más bytes que el límite configurado."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Response body exceeds the {limit} byte limit")


class CredentialsError(Exception):
    """La configuración no describe ninguna forma de autenticarse."""


class InstallationAuthError(Exception):
    """Falló el intercambio de credenciales de la GitHub App por un token."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
