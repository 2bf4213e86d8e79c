"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y autenticación de todas las llamadas a GitHub.
- Facilita testeo: el pipeline solo ve un `RequestExecutor`, que se puede
  sustituir por un stub o por un cliente con `httpx.MockTransport`.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from adapters.github_auth import GITHUB_ACCEPT, GithubAppAuth, TokenAuth
from core.config import AppSettings
from core.errors import CredentialsError, ResponseTooLargeError

logger = logging.getLogger(__name__)


def build_async_client(
    settings: AppSettings | None = None,
    *,
    auth: httpx.Auth | None = None,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults para la API de GitHub."""

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": GITHUB_ACCEPT,
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers=headers,
        auth=auth,
        transport=transport,
    )


def build_auth(settings: AppSettings) -> httpx.Auth:
    """Elige el flujo de autenticación según la configuración disponible."""

    if settings.token:
        return TokenAuth(settings.token)
    if settings.has_app_credentials:
        try:
            private_key = settings.resolve_private_key()
        except OSError as exc:
            raise CredentialsError(f"Cannot read GitHub App private key: {exc}") from exc
        if not private_key or not private_key.strip():
            raise CredentialsError("GitHub App private key is empty")
        if settings.app_id and settings.installation_login:
            return GithubAppAuth(
                app_id=settings.app_id,
                private_key=private_key,
                installation_login=settings.installation_login,
                api_base_url=settings.api_base_url,
                user_agent=settings.user_agent,
            )
    raise CredentialsError(
        "No GitHub credentials configured: set GH_GQL_TOKEN or "
        "GH_GQL_APP_ID + GH_GQL_PRIVATE_KEY(_PATH) + GH_GQL_INSTALLATION_LOGIN"
    )


class HttpxRequestExecutor:
    """`RequestExecutor` sobre un `httpx.AsyncClient` autenticado.

    Los headers y la auth del cliente se aplican a cada request; la respuesta
    se devuelve en modo stream, sin leer.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def execute(self, request: httpx.Request) -> httpx.Response:
        prepared = self._client.build_request(
            request.method,
            request.url,
            content=request.content,
            headers=request.headers,
        )
        return await self._client.send(prepared, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpxRequestExecutor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def build_executor(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpxRequestExecutor:
    settings = settings or AppSettings()
    auth = build_auth(settings)
    client = build_async_client(settings, auth=auth, transport=transport)
    return HttpxRequestExecutor(client)


async def collect_body(response: httpx.Response, limit: int) -> bytes:
    """Lee el body completo del stream, fallando si supera `limit` bytes.

    Nunca trunca: en cuanto el acumulado pasa del límite se lanza
    `ResponseTooLargeError`. La respuesta queda cerrada en todos los casos.
    """

    try:
        declared = response.headers.get("Content-Length")
        encoded = "Content-Encoding" in response.headers
        if declared is not None and declared.isdigit() and not encoded and int(declared) > limit:
            logger.warning("Rejecting response: Content-Length %s exceeds %d bytes", declared, limit)
            raise ResponseTooLargeError(limit)

        buffer = bytearray()
        async for chunk in response.aiter_bytes():
            buffer.extend(chunk)
            if len(buffer) > limit:
                logger.warning("Rejecting response: body exceeds %d bytes", limit)
                raise ResponseTooLargeError(limit)
        return bytes(buffer)
    finally:
        await response.aclose()
