"""CLI principal (Typer).

Comandos:
- `query KIND NODE_ID`: consulta un objeto por node ID y lo muestra/exporta.
- `doctor ...`: diagnósticos de entorno y configuración de credenciales.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console

from adapters.json_exporter import export_node_json, node_payload
from cli import doctor
from cli.ui_components import build_failure_panel, build_node_table, print_banner
from core.config import AppSettings
from core.domain.models import QUERYABLE_TYPES, GraphqlNode
from core.errors import (
    CredentialsError,
    GraphqlClientError,
    InstallationAuthError,
    ResponseTooLargeError,
)
from core.services.query_pipeline import GithubGraphqlClient

app = typer.Typer(no_args_is_help=True, help="Typed queries against the GitHub GraphQL API.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _query(settings: AppSettings, value_type: type[GraphqlNode], node_id: str) -> GraphqlNode:
    async with GithubGraphqlClient.from_settings(settings) as client:
        return await client.query(value_type, node_id)


@app.command()
def query(
    kind: str = typer.Argument(..., help=f"Object type: {', '.join(QUERYABLE_TYPES)}."),
    node_id: str = typer.Argument(..., help="GitHub global node ID (e.g. R_kgDO...)."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write JSON to this file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Query one object by node ID and decode it into its type."""

    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    value_type = QUERYABLE_TYPES.get(kind.strip().lower())
    if value_type is None:
        raise typer.BadParameter(
            f"unknown kind '{kind}' (choose from {', '.join(QUERYABLE_TYPES)})",
            param_hint="KIND",
        )
    if not node_id.strip():
        raise typer.BadParameter("node ID must not be empty", param_hint="NODE_ID")

    try:
        node = asyncio.run(_query(settings, value_type, node_id))
    except (CredentialsError, InstallationAuthError) as exc:
        _err_console.print(f"[red]Authentication:[/red] {exc}")
        raise typer.Exit(code=2) from None
    except GraphqlClientError as exc:
        _err_console.print(build_failure_panel(exc))
        raise typer.Exit(code=1) from None
    except (ResponseTooLargeError, httpx.HTTPError) as exc:
        _err_console.print(f"[red]Request failed:[/red] {exc}")
        raise typer.Exit(code=1) from None

    if as_json:
        _console.print_json(json.dumps(node_payload(node)))
    else:
        if _console.is_terminal:
            print_banner(_console)
        _console.print(build_node_table(node))

    if output is not None:
        path = export_node_json(node=node, output_path=output)
        _err_console.print(f"[green]Saved JSON to:[/green] {path}")


def run() -> None:
    app()
