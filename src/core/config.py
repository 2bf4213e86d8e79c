"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/auth) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_RESPONSE_BYTES = 10 * 1024


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "gh-graphql-query"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "gh-graphql-query"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "gh-graphql-query"
    return Path.home() / ".config" / "gh-graphql-query"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# gh-graphql-query user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Credenciales soportadas (en orden de preferencia):
    - `token`: token bearer ya emitido (PAT o token de instalación).
    - `app_id` + `private_key`/`private_key_path` + `installation_login`:
      la app se autentica como instalación y renueva el token sola.
    """

    model_config = SettingsConfigDict(
        env_prefix="GH_GQL_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://api.github.com",
        min_length=8,
        description="Base URL de la API de GitHub (o GitHub Enterprise).",
    )
    graphql_path: str = Field(
        default="/graphql",
        pattern=r"^/",
        description="Ruta del endpoint GraphQL relativa a `api_base_url`.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="gh-graphql-query/0.1",
        min_length=1,
        description="User-Agent enviado a la API (GitHub lo exige).",
    )
    max_response_bytes: int = Field(
        default=DEFAULT_MAX_RESPONSE_BYTES,
        ge=1,
        description="Tamaño máximo del body de respuesta que se acepta (bytes).",
    )

    token: str | None = Field(
        default=None,
        description="Token bearer estático.",
    )
    app_id: str | None = Field(
        default=None,
        description="ID de la GitHub App.",
    )
    private_key: str | None = Field(
        default=None,
        description="Clave privada PEM de la GitHub App (texto).",
    )
    private_key_path: Path | None = Field(
        default=None,
        description="Ruta a la clave privada PEM de la GitHub App.",
    )
    installation_login: str | None = Field(
        default=None,
        description="Cuenta (usuario u organización) donde está instalada la app.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging por defecto para la CLI.",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def graphql_url(self) -> str:
        return f"{self.api_base_url}{self.graphql_path}"

    @property
    def has_app_credentials(self) -> bool:
        has_key = bool(self.private_key) or self.private_key_path is not None
        return bool(self.app_id) and has_key and bool(self.installation_login)

    def resolve_private_key(self) -> str | None:
        """Devuelve el PEM de la app, leyendo `private_key_path` si hace falta."""

        if self.private_key:
            # Los .env suelen guardar el PEM en una línea con `\n` literales.
            return self.private_key.replace("\\n", "\n")
        if self.private_key_path is not None:
            return self.private_key_path.expanduser().read_text(encoding="utf-8")
        return None
