"""
GitHub credential commands: login, logout, status.
"""

import asyncio
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from tracksync.cli import common
from tracksync.cli.errors import ExitCode, handle_errors
from tracksync.core.github import GitHubAuth, find_env_token

console = Console()
app = typer.Typer(
    name="auth",
    help="Manage the GitHub token",
    no_args_is_help=True,
)


async def _fetch_user(state: common.CliState, auth: GitHubAuth) -> dict[str, Any]:
    async with common.build_client(state, auth) as client:
        return await client.get_authenticated_user()


@app.command()
def login(
    ctx: typer.Context,
    token: str | None = typer.Option(
        None,
        "--token",
        "-t",
        help="Personal access token (prompted for if omitted)",
    ),
) -> None:
    """
    Verify a personal access token and store it.

    The token is checked against the GitHub API before it is saved.

    Examples:
        tracksync auth login
        tracksync auth login --token ghp_...
    """
    state = common.get_state(ctx)
    if not token:
        token = typer.prompt("GitHub token", hide_input=True)

    with handle_errors(state.debug):
        user = asyncio.run(_fetch_user(state, GitHubAuth(token=token)))
        username = str(user.get("login", ""))
        state.credentials().save(GitHubAuth(token=token, username=username))

    console.print(f"[green]✓[/green] Logged in as [cyan]{username or 'unknown user'}[/cyan]")


@app.command()
def logout(ctx: typer.Context) -> None:
    """
    Remove the stored token.

    Examples:
        tracksync auth logout
    """
    state = common.get_state(ctx)
    if state.credentials().clear():
        console.print("[green]✓[/green] Stored token removed")
    else:
        console.print("[dim]No stored token[/dim]")

    found = find_env_token(state.config.github.token_env_var)
    if found:
        console.print(f"[yellow]Note:[/yellow] ${found[0]} is still set and will be used")


@app.command()
def status(
    ctx: typer.Context,
    check: bool = typer.Option(
        False,
        "--check",
        help="Verify the token against the GitHub API",
    ),
) -> None:
    """
    Show which token would be used.

    Examples:
        tracksync auth status
        tracksync auth status --check
    """
    state = common.get_state(ctx)
    auth = state.auth()
    if auth is None:
        console.print("[yellow]Not logged in[/yellow]")
        raise typer.Exit(ExitCode.USER_ERROR)

    found = find_env_token(state.config.github.token_env_var)
    if found is None:
        source = "stored credentials"
    else:
        source = f"${found[0]}"
        env_file = state.env.source_of(found[0])
        if env_file is not None:
            source += f" ({escape(str(env_file))})"
    console.print(f"Token from {source}")
    if auth.username:
        console.print(f"User: [cyan]{auth.username}[/cyan]")

    if check:
        with handle_errors(state.debug):
            user = asyncio.run(_fetch_user(state, auth))
        console.print(f"[green]✓[/green] Token valid for [cyan]{user.get('login', '?')}[/cyan]")
