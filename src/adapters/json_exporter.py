"""Exportación JSON de objetos consultados.

El fichero reproduce la forma en que GitHub devuelve el nodo: claves con los
nombres de campo de GraphQL y `__typename` con el tipo concreto, de modo que
el mismo fichero se puede volver a decodificar con `model_validate_json`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.domain.models import GraphqlNode

logger = logging.getLogger(__name__)


def node_payload(node: GraphqlNode) -> dict[str, Any]:
    payload: dict[str, Any] = {"__typename": type(node).graphql_type}
    payload.update(node.model_dump(mode="json", by_alias=True))
    return payload


def export_node_json(*, node: GraphqlNode, output_path: Path) -> Path:
    """Escribe el nodo como JSON UTF-8 estable (claves ordenadas).

    Se escribe primero a un temporal hermano y luego se reemplaza el destino,
    así un fallo a mitad no deja un fichero truncado.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(node_payload(node), ensure_ascii=False, indent=2, sort_keys=True) + "\n"

    partial = output_path.with_name(f".{output_path.name}.partial")
    try:
        partial.write_text(text, encoding="utf-8")
        partial.replace(output_path)
    finally:
        partial.unlink(missing_ok=True)

    logger.info("Exported %s %s to %s", type(node).graphql_type, node.id, output_path)
    return output_path
