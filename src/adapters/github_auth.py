"""Autenticación contra la API de GitHub (flujos `httpx.Auth`).

Dos modos:
- `TokenAuth`: token bearer ya emitido (PAT o token de instalación).
- `GithubAppAuth`: la GitHub App firma un JWT (RS256, PyJWT), localiza su
  instalación en `installation_login` y lo intercambia por un token de
  instalación de vida corta, que se cachea y se renueva antes de expirar.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Generator

import httpx
import jwt
from pydantic import ValidationError

from core.domain.models import Installation, InstallationToken
from core.errors import InstallationAuthError

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"


class TokenAuth(httpx.Auth):
    """Adjunta `Authorization: Bearer <token>` a cada request."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


class GithubAppAuth(httpx.Auth):
    """Autentica como instalación de una GitHub App.

    Solo soporta clientes async. Los requests de intercambio de token se
    envían por el mismo cliente (mismo transporte/timeouts) antes del
    request real.
    """

    jwt_lifetime = timedelta(minutes=9)
    # GitHub recomienda retrasar `iat` para tolerar relojes desincronizados.
    jwt_clock_skew = timedelta(seconds=60)
    refresh_margin = timedelta(seconds=60)

    def __init__(
        self,
        *,
        app_id: str,
        private_key: str,
        installation_login: str,
        api_base_url: str = "https://api.github.com",
        user_agent: str = "gh-graphql-query/0.1",
    ) -> None:
        self._app_id = app_id
        self._private_key = private_key
        self._installation_login = installation_login
        self._api_base_url = api_base_url.rstrip("/")
        self._user_agent = user_agent
        self._installation_id: int | None = None
        self._token: InstallationToken | None = None
        self._lock = asyncio.Lock()

    @property
    def installation_id(self) -> int | None:
        return self._installation_id

    def build_app_jwt(self, now: float | None = None) -> str:
        issued = int(time.time() if now is None else now)
        payload = {
            "iat": issued - int(self.jwt_clock_skew.total_seconds()),
            "exp": issued + int(self.jwt_lifetime.total_seconds()),
            "iss": self._app_id,
        }
        return jwt.encode(payload, self._private_key, algorithm="RS256")

    def token_is_fresh(self, now: datetime | None = None) -> bool:
        if self._token is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self._token.expires_at - self.refresh_margin > now

    def _app_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.build_app_jwt()}",
            "Accept": GITHUB_ACCEPT,
            "User-Agent": self._user_agent,
        }

    def _installation_request(self, headers: dict[str, str]) -> httpx.Request:
        url = f"{self._api_base_url}/users/{self._installation_login}/installation"
        return httpx.Request("GET", url, headers=headers)

    def _access_token_request(self, headers: dict[str, str]) -> httpx.Request:
        url = f"{self._api_base_url}/app/installations/{self._installation_id}/access_tokens"
        return httpx.Request("POST", url, headers=headers)

    def _parse_installation_id(self, response: httpx.Response) -> int:
        if response.status_code != 200:
            raise InstallationAuthError(
                f"Could not find an installation for '{self._installation_login}'",
                status_code=response.status_code,
            )
        try:
            return Installation.model_validate_json(response.content).id
        except ValidationError as exc:
            raise InstallationAuthError(f"Malformed installation response: {exc}") from exc

    @staticmethod
    def _parse_token(response: httpx.Response) -> InstallationToken:
        if response.status_code not in (200, 201):
            raise InstallationAuthError(
                "Installation access token exchange failed",
                status_code=response.status_code,
            )
        try:
            return InstallationToken.model_validate_json(response.content)
        except ValidationError as exc:
            raise InstallationAuthError(f"Malformed access token response: {exc}") from exc

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("GithubAppAuth requires an httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        # Solo se leen los bodies de los requests de intercambio; el de la
        # respuesta final lo consume (con límite) quien llama.
        async with self._lock:
            if not self.token_is_fresh():
                headers = self._app_headers()
                if self._installation_id is None:
                    response = yield self._installation_request(headers)
                    await response.aread()
                    self._installation_id = self._parse_installation_id(response)
                    logger.debug("Resolved GitHub App installation %s", self._installation_id)

                response = yield self._access_token_request(headers)
                await response.aread()
                self._token = self._parse_token(response)
                logger.debug("Installation token refreshed, expires at %s", self._token.expires_at)
            token = self._token.token

        request.headers["Authorization"] = f"Bearer {token}"
        yield request
