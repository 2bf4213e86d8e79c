"""Contrato de tipos consultables.

Por qué Protocol:
- El pipeline es genérico sobre la capacidad "sé renderizar mi query y sé
  decodificarme", no sobre una jerarquía de clases concreta.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class GraphqlQueryable(Protocol[T_co]):
    """Tipo que puede pedirse por node ID a la API GraphQL.

    Reglas de diseño:
    - `graphql_query` es puro y determinista para un mismo `node_id`.
    - `model_validate_json` construye la instancia o lanza `ValueError`
      (p.ej. `pydantic.ValidationError`).
    """

    @classmethod
    def graphql_query(cls, node_id: str) -> str:
        ...

    @classmethod
    def model_validate_json(cls, json_data: str | bytes | bytearray) -> T_co:
        ...
