"""
Local repository commands: init, status, commit, log, branch, switch.

These commands only touch the local repository record; nothing here talks
to the remote.
"""

from datetime import datetime

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tracksync.cli.common import get_state
from tracksync.cli.errors import handle_errors
from tracksync.core.github import parse_remote_url
from tracksync.core.local import ChangeType, RepoConfig
from tracksync.core.local.models import FileChange

console = Console()

_CHANGE_STYLES = {
    ChangeType.ADDED: ("A", "green"),
    ChangeType.MODIFIED: ("M", "yellow"),
    ChangeType.DELETED: ("D", "red"),
}


def _format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")


def _print_changes(changes: list[FileChange]) -> None:
    for change in changes:
        marker, style = _CHANGE_STYLES[change.type]
        console.print(f"  [{style}]{marker}[/{style}] {escape(change.file.name)}")


def init(
    ctx: typer.Context,
    remote: str | None = typer.Option(
        None,
        "--remote",
        "-r",
        help="Remote repository URL (https://github.com/<owner>/<repo>)",
    ),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Initial branch name",
    ),
) -> None:
    """
    Initialize tracking for the project directory.

    Creates the repository record with an initial commit. Running it again
    leaves an existing record untouched.

    Examples:
        tracksync init
        tracksync init --remote https://github.com/octocat/site
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        local = state.local()
        existing = local.get_state(state.project_id)

        overrides = {}
        if remote:
            parse_remote_url(remote)
            overrides["remote_url"] = remote
        if branch:
            overrides["branch"] = branch
        config = RepoConfig.model_validate({**state.config.defaults.model_dump(), **overrides})

        repo_state = local.init(state.project_id, config)

    if existing is not None and existing.commits:
        console.print(f"[blue]Already initialized:[/blue] {state.project_id}")
        return

    console.print(
        f"[green]✓[/green] Initialized {state.project_id} on branch "
        f"[cyan]{repo_state.current_branch}[/cyan]"
    )
    if repo_state.config.remote_url:
        console.print(f"  Remote: {repo_state.config.remote_url}")


def status(ctx: typer.Context) -> None:
    """
    Show files changed since the last commit.

    Examples:
        tracksync status
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        repo_status = state.local().get_status(state.project_id, state.files())

    if not repo_status.has_git:
        console.print("[yellow]Not initialized.[/yellow] Run [cyan]tracksync init[/cyan]")
        raise typer.Exit(2)

    console.print(f"On branch [cyan]{repo_status.current_branch}[/cyan]")
    if repo_status.is_clean:
        console.print("[green]Nothing to commit, working tree clean[/green]")
        return

    console.print(f"Changes ({len(repo_status.changes)}):")
    _print_changes(repo_status.changes)


def commit(
    ctx: typer.Context,
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (generated from the changes if omitted)",
    ),
) -> None:
    """
    Record the current files as a commit.

    Examples:
        tracksync commit
        tracksync commit -m "Rework landing page"
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        local = state.local()
        repo_state = local.require_state(state.project_id)
        files = state.files()
        if not message:
            changes = local.get_status(state.project_id, files).changes
            message = local.generate_commit_message(
                changes, repo_state.config.commit_message_template
            )
        new_commit = local.commit(state.project_id, message, files)

    console.print(
        f"[green]✓[/green] {escape(f'[{new_commit.branch} {new_commit.id[:8]}]')} "
        f"{escape(new_commit.message)}"
    )
    _print_changes(new_commit.changes)


def log(
    ctx: typer.Context,
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Maximum number of commits to show",
    ),
) -> None:
    """
    Show commit history, newest first.

    Examples:
        tracksync log
        tracksync log -n 5
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        history = state.local().get_history(state.project_id, limit)

    if not history:
        console.print("[dim]No commits yet[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Commit", style="yellow")
    table.add_column("Branch", style="cyan")
    table.add_column("Date")
    table.add_column("Changes", justify="right")
    table.add_column("Message")

    for entry in history:
        table.add_row(
            entry.id[:8],
            entry.branch,
            _format_timestamp(entry.timestamp),
            str(len(entry.changes)),
            escape(entry.message),
        )
    console.print(table)


def branch(
    ctx: typer.Context,
    name: str | None = typer.Argument(None, help="Branch to create (lists branches if omitted)"),
    from_branch: str | None = typer.Option(
        None,
        "--from",
        help="Source branch (defaults to the current branch)",
    ),
) -> None:
    """
    List branches, or create one.

    Examples:
        tracksync branch
        tracksync branch redesign
        tracksync branch hotfix --from main
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        local = state.local()
        if name is None:
            repo_state = local.require_state(state.project_id)
            for branch_name, item in repo_state.branches.items():
                marker = "*" if branch_name == repo_state.current_branch else " "
                console.print(
                    f"{marker} [cyan]{branch_name}[/cyan] "
                    f"[dim]{item.head[:8]} ({len(item.commits)} commits)[/dim]"
                )
            return

        created = local.create_branch(state.project_id, name, from_branch)

    console.print(f"[green]✓[/green] Created branch [cyan]{created.name}[/cyan]")


def switch(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Branch to switch to"),
) -> None:
    """
    Make another branch current.

    Examples:
        tracksync switch redesign
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        state.local().switch_branch(state.project_id, name)

    console.print(f"[green]✓[/green] Switched to branch [cyan]{name}[/cyan]")


# =============================================================================
# remote
# =============================================================================

remote_app = typer.Typer(
    name="remote",
    help="Show or set the project's remote repository",
    no_args_is_help=False,
)


@remote_app.callback(invoke_without_command=True)
def remote_show(ctx: typer.Context) -> None:
    """Show the configured remote."""
    if ctx.invoked_subcommand is not None:
        return

    state = get_state(ctx)
    with handle_errors(state.debug):
        repo_state = state.local().require_state(state.project_id)

    config = repo_state.config
    body = (
        f"URL: {config.remote_url or '[dim]not set[/dim]'}\n"
        f"Branch: {config.branch}\n"
        f"Author: {config.author}"
    )
    if repo_state.last_push:
        body += f"\nLast push: {_format_timestamp(repo_state.last_push)}"
    console.print(Panel(body, title="Remote", expand=False))


@remote_app.command("set-url")
def remote_set_url(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="https://github.com/<owner>/<repo>"),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Remote branch to push to and pull from",
    ),
) -> None:
    """
    Set the remote repository URL.

    Examples:
        tracksync remote set-url https://github.com/octocat/site
        tracksync remote set-url https://github.com/octocat/site.git -b gh-pages
    """
    state = get_state(ctx)
    with handle_errors(state.debug):
        info = parse_remote_url(url)
        changes: dict[str, str] = {"remote_url": url}
        if branch:
            changes["branch"] = branch
        state.local().configure(state.project_id, **changes)

    console.print(f"[green]✓[/green] Remote set to [cyan]{info.full_name}[/cyan]")
