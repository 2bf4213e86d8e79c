"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and credential setup.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/")
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _credentials_row(settings: AppSettings) -> tuple[str, str]:
    if settings.token:
        return "OK", "Static bearer token"
    if settings.has_app_credentials:
        try:
            settings.resolve_private_key()
        except OSError as exc:
            return "FAIL", f"Private key unreadable: {exc}"
        return "OK", f"GitHub App {settings.app_id} on '{settings.installation_login}'"
    return "MISSING", "Set GH_GQL_TOKEN or run `doctor setup`"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="gh-graphql-query Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    status, detail = _credentials_row(settings)
    table.add_row("Credentials", status, detail)
    table.add_row("GraphQL endpoint", "OK", settings.graphql_url)
    table.add_row("Response cap", "OK", f"{settings.max_response_bytes} bytes")

    # Connectivity (best-effort)
    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)


@app.command()
def setup() -> None:
    """Interactive credential setup (stored in the user config .env)."""

    mode = typer.prompt("Credential type (token/app)", default="token", show_default=True).strip().lower()

    if mode == "token":
        token = typer.prompt("GitHub token", hide_input=True).strip()
        if not token:
            raise typer.BadParameter("token is required")
        values: dict[str, str | None] = {"GH_GQL_TOKEN": token}
    elif mode == "app":
        app_id = typer.prompt("GitHub App ID").strip()
        key_path = typer.prompt("Path to the App private key (.pem)").strip()
        login = typer.prompt("Installation account login").strip()
        if not app_id or not key_path or not login:
            raise typer.BadParameter("app id, key path and login are required")
        values = {
            "GH_GQL_APP_ID": app_id,
            "GH_GQL_PRIVATE_KEY_PATH": key_path,
            "GH_GQL_INSTALLATION_LOGIN": login,
        }
    else:
        raise typer.BadParameter("credential type must be 'token' or 'app'")

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved credentials to:[/green] {env_path}")
