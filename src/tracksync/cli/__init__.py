"""
tracksync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

from pathlib import Path

import typer
from rich.console import Console

from tracksync import __version__
from tracksync.cli import auth, repo, sync
from tracksync.cli.common import CliState, setup_logging
from tracksync.cli.errors import handle_errors
from tracksync.core.config import load_config, load_layered_env

# Help panel names for command grouping
PANEL_LOCAL = "Track Changes Locally"
PANEL_REMOTE = "Sync with GitHub"

app = typer.Typer(
    name="tracksync",
    help="Track project files locally and sync them to a GitHub repository",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    project_dir: Path = typer.Option(
        Path("."),
        "--project-dir",
        "-C",
        file_okay=False,
        resolve_path=True,
        help="Project directory (default: current directory)",
    ),
    project: str | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project id (default: the project directory name)",
    ),
) -> None:
    """
    tracksync - local history for a folder of files, synced to GitHub.

    Commits are recorded locally; push publishes the files as a single
    commit on the remote branch, and pull previews remote files before
    writing anything.

    Quick Start:
        1. tracksync init --remote https://github.com/<owner>/<repo>
        2. tracksync commit
        3. tracksync auth login
        4. tracksync push
    """
    setup_logging(debug)

    # Precedence: OS env > project .env > user .env
    env_layers = load_layered_env(project_dir=project_dir)

    with handle_errors(debug):
        config = load_config(project_dir, use_cache=False)

    ctx.obj = CliState(
        project_dir=project_dir,
        project_id=project or project_dir.name or "default",
        config=config,
        debug=debug,
        env=env_layers,
    )


# =============================================================================
# Track Changes Locally
# =============================================================================

app.command(name="init", rich_help_panel=PANEL_LOCAL)(repo.init)
app.command(name="status", rich_help_panel=PANEL_LOCAL)(repo.status)
app.command(name="commit", rich_help_panel=PANEL_LOCAL)(repo.commit)
app.command(name="log", rich_help_panel=PANEL_LOCAL)(repo.log)
app.command(name="branch", rich_help_panel=PANEL_LOCAL)(repo.branch)
app.command(name="switch", rich_help_panel=PANEL_LOCAL)(repo.switch)

# =============================================================================
# Sync with GitHub
# =============================================================================

app.add_typer(repo.remote_app, name="remote", rich_help_panel=PANEL_REMOTE)
app.command(name="push", rich_help_panel=PANEL_REMOTE)(sync.push)
app.command(name="pull", rich_help_panel=PANEL_REMOTE)(sync.pull)
app.command(name="compare", rich_help_panel=PANEL_REMOTE)(sync.compare)
app.add_typer(auth.app, name="auth", rich_help_panel=PANEL_REMOTE)


@app.command(name="version")
def version() -> None:
    """Show tracksync version and exit."""
    console.print(f"tracksync version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
