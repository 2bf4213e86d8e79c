"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import GraphqlNode
from core.errors import CharacterSetError, DecodingError, GraphqlClientError, HttpError

_PREVIEW_CHARS = 2_000


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida (solo en modo interactivo)."""

    title = Text("gh-graphql-query", style="bold cyan")
    subtitle = Text("GitHub GraphQL • node ID -> objeto tipado", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_node_table(node: GraphqlNode) -> Table:
    """Tabla campo/valor para un objeto decodificado."""

    table = Table(title=type(node).__name__)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in node.model_dump(by_alias=True).items():
        table.add_row(key, "-" if value is None else str(value))
    return table


def build_failure_panel(exc: GraphqlClientError) -> Panel:
    """Panel con el tipo de fallo y su carga de diagnóstico."""

    body = Text()
    if isinstance(exc, HttpError):
        title = f"HTTP error {exc.status_code}"
        body.append(f"The API answered with status {exc.status_code}.")
        request_id = exc.response.headers.get("X-GitHub-Request-Id")
        if request_id:
            body.append(f"\nRequest ID: {request_id}", style="dim")
    elif isinstance(exc, CharacterSetError):
        title = "Character set error"
        body.append(f"The response did not match the type and is not UTF-8 ({len(exc.body)} bytes).")
    elif isinstance(exc, DecodingError):
        title = "Decoding error"
        body.append("The response did not match the requested type:\n\n")
        body.append(exc.body[:_PREVIEW_CHARS], style="dim")
    else:
        title = "GraphQL client error"
        body.append(str(exc))

    return Panel(body, title=Text(title, style="bold red"), border_style="red")
