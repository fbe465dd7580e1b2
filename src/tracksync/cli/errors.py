"""
Standardized error handling and exit codes for the tracksync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from enum import IntEnum

import typer
from rich.console import Console
from rich.markup import escape

from tracksync.core.errors import (
    BranchExistsError,
    BranchNotFoundError,
    InvalidRemoteUrlError,
    LocalStateError,
    NoOpCommitError,
    NoRemoteConfiguredError,
    NotAuthenticatedError,
    RemoteApiError,
    RepositoryNotInitializedError,
    SourceBranchNotFoundError,
    StaleTipError,
    StateStoreError,
    TrackSyncError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for tracksync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including remote API failures."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No remote configured",
        ...     solution="tracksync remote set-url https://github.com/owner/repo",
        ... )
    """
    console.print(f"[red]Error:[/red] {escape(problem)}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}")


def exit_code_for(error: BaseException) -> ExitCode:
    """Map an exception to the exit code the CLI reports for it."""
    if isinstance(error, StateStoreError):
        return ExitCode.GENERAL_ERROR
    if isinstance(
        error,
        (LocalStateError, NoRemoteConfiguredError, InvalidRemoteUrlError, NotAuthenticatedError),
    ):
        return ExitCode.USER_ERROR
    if isinstance(error, RemoteApiError) and error.status == 401:
        return ExitCode.USER_ERROR
    if isinstance(error, ValueError):
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def report_error(error: BaseException) -> None:
    """Print an exception with the guidance that fits its type."""
    if isinstance(error, RepositoryNotInitializedError):
        print_error(str(error), solution="tracksync init")
    elif isinstance(error, NoOpCommitError):
        print_error("Nothing to commit", reason="No files changed since the last commit")
    elif isinstance(error, (BranchExistsError, SourceBranchNotFoundError)):
        print_error(str(error), solution="tracksync branch  # list branches")
    elif isinstance(error, BranchNotFoundError):
        print_error(str(error), solution="tracksync branch <name>  # create it first")
    elif isinstance(error, NoRemoteConfiguredError):
        print_error(
            "No remote configured",
            solution="tracksync remote set-url https://github.com/<owner>/<repo>",
        )
    elif isinstance(error, InvalidRemoteUrlError):
        print_error(
            str(error),
            reason="Remote URLs must look like https://github.com/<owner>/<repo>",
        )
    elif isinstance(error, NotAuthenticatedError):
        print_error(
            "Not authenticated with GitHub",
            reason="Set GITHUB_TOKEN or store a token",
            solution="tracksync auth login",
        )
    elif isinstance(error, StaleTipError):
        print_error(
            f"Push rejected: {error.message}",
            reason="The remote branch moved since the push started",
            solution="tracksync pull  # then push again",
        )
    elif isinstance(error, RemoteApiError):
        if error.status == 0:
            print_error(f"Could not reach GitHub: {error.message}")
        elif error.status == 401:
            print_error(
                f"GitHub rejected the token: {error.message}",
                solution="tracksync auth login",
            )
        else:
            print_error(f"GitHub API error {error.status}: {error.message}")
    else:
        print_error(str(error))


@contextmanager
def handle_errors(debug: bool = False) -> Iterator[None]:
    """
    Turn tracksync errors raised inside the block into a message and exit code.

    Args:
        debug: If True, also print the full traceback
    """
    try:
        yield
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)
    except (TrackSyncError, ValueError) as e:
        report_error(e)
        if debug:
            console.print("\n[dim]Full traceback:[/dim]")
            console.print(traceback.format_exc(), markup=False, highlight=False)
        raise typer.Exit(exit_code_for(e)) from e
