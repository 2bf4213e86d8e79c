"""Cliente GraphQL tipado: consulta un objeto por node ID y lo decodifica.

Flujo (una sola ida y vuelta por llamada, sin reintentos ni caché):
build -> execute -> status -> collect (con límite) -> decode
-> (si falla) reinterpretar el body como texto para diagnóstico.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TypeVar

import httpx
from pydantic import ValidationError

from adapters.http_client import build_executor, collect_body
from core.config import DEFAULT_MAX_RESPONSE_BYTES, AppSettings
from core.domain.models import GraphqlRequest
from core.errors import CharacterSetError, DecodingError, HttpError
from core.interfaces.executor import RequestExecutor
from core.interfaces.queryable import GraphqlQueryable

logger = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")


class GithubGraphqlClient:
    """Envoltorio sobre un `RequestExecutor` para consultar la API GraphQL.

    Varias llamadas a `query` pueden ejecutarse en paralelo sobre la misma
    instancia: cada una construye y posee su propio request/response.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        graphql_url: str = "https://api.github.com/graphql",
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        self.executor = executor
        self.graphql_url = graphql_url
        self.max_response_bytes = max_response_bytes

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> GithubGraphqlClient:
        settings = settings or AppSettings()
        return cls(
            build_executor(settings),
            graphql_url=settings.graphql_url,
            max_response_bytes=settings.max_response_bytes,
        )

    def build_request(self, document: str) -> httpx.Request:
        body = GraphqlRequest(query=document).model_dump_json().encode("utf-8")
        return httpx.Request(
            "POST",
            self.graphql_url,
            content=body,
            headers={"Content-Type": "application/json"},
        )

    async def query(self, value_type: type[GraphqlQueryable[ValueT]], node_id: str) -> ValueT:
        """Consulta la API y decodifica la respuesta en una instancia de `value_type`.

        - `HttpError`: status distinto de 200 (la respuesta se cierra sin leer el body).
        - `CharacterSetError`: el body no encaja con el tipo y no es UTF-8.
        - `DecodingError`: el body es texto pero no encaja con el tipo.

        Los errores del ejecutor (red, timeout, auth) y `ResponseTooLargeError`
        se propagan tal cual.
        """

        request = self.build_request(value_type.graphql_query(node_id))
        logger.debug("POST %s for %s %s", self.graphql_url, value_type.__name__, node_id)

        response = await self.executor.execute(request)
        if response.status_code != httpx.codes.OK:
            logger.warning("GraphQL API returned HTTP %d for %s", response.status_code, node_id)
            # Cerrar sin leer libera la conexión del pool; status y headers siguen disponibles.
            await response.aclose()
            raise HttpError(response)

        body = await collect_body(response, self.max_response_bytes)

        try:
            return value_type.model_validate_json(body)
        except (ValidationError, UnicodeDecodeError):
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning("Undecodable %d byte response for %s", len(body), node_id)
                raise CharacterSetError(body) from None
            logger.warning("Response for %s does not match %s", node_id, value_type.__name__)
            raise DecodingError(text) from None

    async def aclose(self) -> None:
        await self.executor.aclose()

    async def __aenter__(self) -> GithubGraphqlClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
