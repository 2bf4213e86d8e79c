"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores y modelos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.executor import RequestExecutor
from core.interfaces.queryable import GraphqlQueryable

__all__ = ["GraphqlQueryable", "RequestExecutor"]
