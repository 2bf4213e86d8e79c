"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- El esquema de cada tipo es también su decodificador (`model_validate_json`).
- Cada tipo consultable sabe renderizar su propio documento GraphQL a partir
  de un node ID, así el pipeline no conoce campos concretos.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class GraphqlRequest(BaseModel):
    """Sobre de la petición GraphQL: solo `query`, sin variables."""

    query: str = Field(
        ...,
        min_length=1,
        description="Documento GraphQL completo (con el ID ya incrustado).",
    )


class GraphqlNode(BaseModel):
    """Base para objetos consultables por node ID.

    Acepta tanto la forma plana (`{"id": ..., "name": ...}`) como la respuesta
    real de GitHub (`{"data": {"node": {...}}}`). Cualquier otra cosa, como un
    sobre `{"errors": [...]}`, se valida tal cual y falla.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )

    graphql_type: ClassVar[str]

    id: str = Field(
        ...,
        min_length=1,
        description="Node ID global de GitHub.",
    )

    @model_validator(mode="before")
    @classmethod
    def _unwrap_data_node(cls, value: Any) -> Any:
        if isinstance(value, dict) and "data" in value and "id" not in value:
            data = value.get("data")
            if isinstance(data, dict) and isinstance(data.get("node"), dict):
                return data["node"]
        return value

    @classmethod
    def graphql_fields(cls) -> list[str]:
        return [field.alias or name for name, field in cls.model_fields.items()]

    @classmethod
    def graphql_query(cls, node_id: str) -> str:
        """Renderiza `query { node(id: "...") { ... on <Tipo> { campos } } }`.

        El ID se escapa como string JSON, que coincide con la sintaxis de
        strings de GraphQL para cualquier ID razonable.
        """

        fields = "\n".join(f"      {name}" for name in cls.graphql_fields())
        return (
            "query {\n"
            f"  node(id: {json.dumps(node_id)}) {{\n"
            f"    ... on {cls.graphql_type} {{\n"
            f"{fields}\n"
            "    }\n"
            "  }\n"
            "}"
        )


class Repository(GraphqlNode):
    graphql_type: ClassVar[str] = "Repository"

    name: str = Field(..., min_length=1, description="Nombre corto del repositorio.")
    name_with_owner: str | None = Field(default=None, description="`owner/name`.")
    url: str | None = Field(default=None, description="URL pública del repositorio.")
    description: str | None = Field(default=None, max_length=10_000)
    stargazer_count: int | None = Field(default=None, ge=0)
    is_private: bool | None = None


class Issue(GraphqlNode):
    graphql_type: ClassVar[str] = "Issue"

    number: int = Field(..., ge=1)
    title: str
    state: str | None = Field(default=None, description="OPEN / CLOSED.")
    url: str | None = None


class PullRequest(GraphqlNode):
    graphql_type: ClassVar[str] = "PullRequest"

    number: int = Field(..., ge=1)
    title: str
    state: str | None = Field(default=None, description="OPEN / CLOSED / MERGED.")
    url: str | None = None
    merged: bool | None = None


class User(GraphqlNode):
    graphql_type: ClassVar[str] = "User"

    login: str = Field(..., min_length=1, max_length=128)
    name: str | None = None
    url: str | None = None


QUERYABLE_TYPES: dict[str, type[GraphqlNode]] = {
    "repository": Repository,
    "issue": Issue,
    "pull-request": PullRequest,
    "user": User,
}


class InstallationToken(BaseModel):
    """Respuesta de `POST /app/installations/{id}/access_tokens`."""

    model_config = ConfigDict(extra="ignore")

    token: str = Field(..., min_length=1)
    expires_at: datetime


class Installation(BaseModel):
    """Respuesta de `GET /users/{login}/installation` (solo lo que se usa)."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., ge=1)
