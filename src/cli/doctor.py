"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.token_store import FileTokenStore
from adapters.users_api import UsersApi
from core.config import AppSettings, write_user_env_vars
from core.errors import IdentityResolutionFailure

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/blogs")
        return response.is_success, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


async def _check_token(settings: AppSettings, token: str) -> tuple[bool, str]:
    """Resolve the token without touching the stored copy."""

    async with build_async_client(settings) as client:
        try:
            identity = await UsersApi(client).fetch_identity(token)
        except IdentityResolutionFailure as exc:
            return False, exc.message
    return True, identity.email or str(identity.id)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    token_file = settings.resolved_token_file()

    table = Table(title="blogdesk Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base_url", "OK", settings.api_base_url)

    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API connectivity", "OK" if ok_api else "FAIL", detail_api)

    token = FileTokenStore(token_file).load()
    if token is None:
        table.add_row("Session", "OPTIONAL", f"No token at {token_file} -> read-only mode")
    else:
        ok_token, detail_token = asyncio.run(_check_token(settings, token))
        table.add_row("Session", "OK" if ok_token else "FAIL", detail_token)

    _console.print(table)

    if not ok_api:
        _console.print(
            "\n[yellow]Note:[/yellow] Point the client at your API with `blogdesk doctor setup-api`."
        )


@app.command(name="setup-api")
def setup_api() -> None:
    """Interactive API setup (stores config in the user config .env)."""

    base_url = typer.prompt(
        "API base URL",
        default=AppSettings().api_base_url,
        show_default=True,
    ).strip()

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base_url must start with http:// or https://")

    env_path = write_user_env_vars({"BLOGDESK_API_BASE_URL": base_url.rstrip("/")})

    _console.print(f"[green]Saved API config to:[/green] {env_path}")
