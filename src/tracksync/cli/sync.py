"""
Remote commands: push, pull, compare.

Push publishes files as a single commit on the remote branch. Pull always
shows a preview first and writes nothing until it is confirmed.
"""

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tracksync.cli import common
from tracksync.cli.errors import handle_errors
from tracksync.core.files import write_project_files
from tracksync.core.github import PushResult, RemoteComparison
from tracksync.core.tracker import PullFileStatus, PullPreview, Tracker

console = Console()

_PULL_STYLES = {
    PullFileStatus.NEW: "green",
    PullFileStatus.MODIFIED: "yellow",
    PullFileStatus.UNCHANGED: "dim",
}


def push(
    ctx: typer.Context,
    message: str | None = typer.Option(
        None,
        "--message",
        "-m",
        help="Remote commit message",
    ),
    files: list[str] | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Push only this file (repeatable; default: all files)",
    ),
) -> None:
    """
    Push project files to the remote branch as one commit.

    The branch is only updated if nobody else pushed since the push
    started; otherwise nothing changes and the push can be retried.

    Examples:
        tracksync push
        tracksync push -m "Publish site"
        tracksync push -f index.html -f style.css
    """
    state = common.get_state(ctx)

    async def _push() -> PushResult:
        async with common.build_client(state, state.auth()) as client:
            tracker = common.build_tracker(state, client)
            return await tracker.push(
                state.project_id, state.files(), message=message, paths=files or None
            )

    with handle_errors(state.debug):
        result = asyncio.run(_push())

    console.print(
        f"[green]✓[/green] Pushed {len(result.files)} files to "
        f"[cyan]{escape(result.branch)}[/cyan] as {result.commit_sha[:8]}"
    )
    if result.url:
        console.print(f"  {result.url}")


def _print_preview(preview: PullPreview) -> None:
    table = Table(
        title=f"{preview.repo.full_name}@{preview.branch}",
        show_header=True,
        header_style="bold",
    )
    table.add_column("File")
    table.add_column("Status")
    table.add_column("Size", justify="right")

    for candidate in preview.candidates:
        style = _PULL_STYLES[candidate.status]
        table.add_row(
            escape(candidate.path),
            f"[{style}]{candidate.status.value}[/{style}]",
            str(candidate.size),
        )
    console.print(table)

    local_only = preview.comparison.added
    if local_only:
        console.print(f"[dim]{len(local_only)} local files are not on the remote[/dim]")


def pull(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Write the pulled files without asking",
    ),
    files: list[str] | None = typer.Option(
        None,
        "--file",
        "-f",
        help="Pull only this file (repeatable; default: every changed file)",
    ),
) -> None:
    """
    Preview remote files and write the selected ones into the project.

    Examples:
        tracksync pull
        tracksync pull --yes
        tracksync pull -f index.html
    """
    state = common.get_state(ctx)

    async def _preview() -> tuple[Tracker, PullPreview]:
        async with common.build_client(state, state.auth()) as client:
            tracker = common.build_tracker(state, client)
            return tracker, await tracker.preview_pull(state.project_id, local_files)

    with handle_errors(state.debug):
        local_files = state.files()
        tracker, preview = asyncio.run(_preview())

    _print_preview(preview)

    selected = files or [c.path for c in preview.changed]
    if not selected:
        console.print("[green]Already up to date[/green]")
        return

    if not yes and not typer.confirm(f"Write {len(selected)} files?"):
        console.print("[yellow]Pull cancelled; no files written[/yellow]")
        return

    with handle_errors(state.debug):
        merged = tracker.confirm_pull(local_files, preview, selected)
        chosen = set(selected)
        write_project_files(
            state.project_dir,
            [f for f in merged if f.name in chosen],
            tracked={f.name for f in local_files},
        )

    console.print(f"[green]✓[/green] Wrote {len(selected)} files")
    console.print("[dim]Run tracksync commit to record them[/dim]")


def compare(ctx: typer.Context) -> None:
    """
    Compare project files with the remote branch.

    Files are matched by git blob hash, so nothing is downloaded.

    Examples:
        tracksync compare
    """
    state = common.get_state(ctx)

    async def _compare() -> RemoteComparison:
        async with common.build_client(state, state.auth()) as client:
            tracker = common.build_tracker(state, client)
            return await tracker.compare(state.project_id, state.files())

    with handle_errors(state.debug):
        comparison = asyncio.run(_compare())

    # Remote-only paths that exist on disk were skipped as binary or ignored
    untracked = [p for p in comparison.deleted if (state.project_dir / p).exists()]
    remote_only = [p for p in comparison.deleted if p not in untracked]

    for label, style, paths in (
        ("local only", "green", comparison.added),
        ("modified", "yellow", comparison.modified),
        ("remote only", "red", remote_only),
        ("untracked", "dim", untracked),
    ):
        for path in paths:
            console.print(f"  [{style}]{label:<11}[/{style}] {escape(path)}")

    if not comparison.has_differences:
        console.print(f"[green]In sync[/green] ({len(comparison.unchanged)} files)")
        return

    summary = (
        f"{len(comparison.added)} local only, {len(comparison.modified)} modified, "
        f"{len(remote_only)} remote only, {len(comparison.unchanged)} unchanged"
    )
    if untracked:
        summary += f", {len(untracked)} untracked"
    console.print(summary)
