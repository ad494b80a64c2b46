"""Main CLI entry point for SnapVCS."""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from snapvcs.constants import EXIT_USER_ERROR, SHORT_HASH_LENGTH
from snapvcs.core import RemoteManager, Repository
from snapvcs.diff import DiffEngine
from snapvcs.errors import FastForwardableError, NotARepositoryError, SnapVCSError
from snapvcs.storage import Commit

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="snapvcs",
    help="A small, local, snapshot-based version control system",
    add_completion=False,
)


@app.callback()
def configure(
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log debug information to stderr",
    ),
) -> None:
    """A small, local, snapshot-based version control system."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _open_repository() -> Repository:
    """Open the repository in the current directory or exit."""
    try:
        return Repository.open(Path.cwd())
    except NotARepositoryError:
        console.print(
            "[bold red]Error:[/bold red] Not in an initialized SnapVCS directory",
            style="red",
        )
        console.print(
            "\nRun [bold]snapvcs init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)


def _fail(error: SnapVCSError) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", style="red")
    raise typer.Exit(EXIT_USER_ERROR)


def _format_date(timestamp: str) -> str:
    dt = datetime.fromisoformat(timestamp).astimezone()
    return dt.strftime("%a %b %d %H:%M:%S %Y %z")


def _print_commit(digest: str, commit: Commit) -> None:
    console.print("===")
    console.print(f"[yellow]commit {digest}[/yellow]")
    if commit.is_merge:
        console.print(
            f"Merge: {commit.parent[:SHORT_HASH_LENGTH]} "
            f"{commit.merge_parent[:SHORT_HASH_LENGTH]}"
        )
    console.print(f"Date: {_format_date(commit.timestamp)}")
    console.print(escape(commit.message))
    console.print()


@app.command()
def version() -> None:
    """Show SnapVCS version."""
    from snapvcs import __version__
    typer.echo(f"SnapVCS version {__version__}")


@app.command()
def init(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a SnapVCS repository in the current directory."""
    repo = Repository(Path.cwd())
    try:
        root = repo.init()
    except SnapVCSError as e:
        _fail(e)

    if not quiet:
        success_message = f"""[bold green]✓[/bold green] Initialized SnapVCS repository

[dim]Repository root:[/dim] {escape(str(repo.workspace_root))}
[dim]Storage location:[/dim] {escape(str(repo.store_dir))}
[dim]Root commit:[/dim] {root[:SHORT_HASH_LENGTH]}

[bold]Next steps:[/bold]
  1. Stage files: [cyan]snapvcs add <file>[/cyan]
  2. Commit them: [cyan]snapvcs commit -m "message"[/cyan]
"""
        console.print(Panel(success_message, border_style="green", title="SnapVCS Initialized"))


@app.command()
def add(
    paths: List[str] = typer.Argument(..., help="Files to stage"),
) -> None:
    """Add files to the staging area."""
    repo = _open_repository()
    try:
        for path in paths:
            filename = repo.add(path)
            console.print(f"  [green]+[/green] {escape(filename)}")
    except SnapVCSError as e:
        _fail(e)


@app.command()
def commit(
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
) -> None:
    """Commit staged files as a snapshot."""
    repo = _open_repository()
    try:
        digest = repo.commit(message or "")
    except SnapVCSError as e:
        _fail(e)

    first_line = (message or "").splitlines()[0]
    console.print(
        f"[bold green]✓ Committed[/bold green] [yellow]{digest[:SHORT_HASH_LENGTH]}[/yellow] "
        f"{escape(first_line)}"
    )


@app.command()
def rm(
    paths: List[str] = typer.Argument(..., help="Files to unstage or remove"),
) -> None:
    """Unstage a file, or stage a tracked file for removal."""
    repo = _open_repository()
    try:
        for path in paths:
            filename = repo.rm(path)
            console.print(f"  [red]-[/red] {escape(filename)}")
    except SnapVCSError as e:
        _fail(e)


@app.command()
def log() -> None:
    """Show first-parent history from HEAD."""
    repo = _open_repository()
    try:
        for digest, entry in repo.log():
            _print_commit(digest, entry)
    except SnapVCSError as e:
        _fail(e)


@app.command("global-log")
def global_log() -> None:
    """Show every commit ever made."""
    repo = _open_repository()
    try:
        for digest, entry in repo.global_log():
            _print_commit(digest, entry)
    except SnapVCSError as e:
        _fail(e)


@app.command()
def find(
    message: str = typer.Argument(..., help="Text to search commit messages for"),
) -> None:
    """Print ids of commits whose message contains the given text."""
    repo = _open_repository()
    try:
        for digest in repo.find(message):
            console.print(digest)
    except SnapVCSError as e:
        _fail(e)


@app.command()
def status() -> None:
    """Show branches, staged files and working-tree changes."""
    repo = _open_repository()
    try:
        state = repo.status()
    except SnapVCSError as e:
        _fail(e)

    console.print("[bold]=== Branches ===[/bold]")
    for name in state.branches:
        if name == state.current_branch:
            console.print(f"[green]*{escape(name)}[/green]")
        else:
            console.print(escape(name))
    if state.current_branch is None:
        console.print(f"[dim](HEAD detached at {state.head[:SHORT_HASH_LENGTH]})[/dim]")
    console.print()

    console.print("[bold]=== Staged Files ===[/bold]")
    for name in state.staged:
        console.print(escape(name))
    console.print()

    console.print("[bold]=== Removed Files ===[/bold]")
    for name in state.removed:
        console.print(escape(name))
    console.print()

    console.print("[bold]=== Modifications Not Staged For Commit ===[/bold]")
    for name, change in state.modified:
        console.print(f"{escape(name)} ({change})")
    console.print()

    console.print("[bold]=== Untracked Files ===[/bold]")
    for name in state.untracked:
        console.print(escape(name))
    console.print()


@app.command()
def checkout(
    target: Optional[str] = typer.Argument(
        None,
        help="Branch to check out, or commit id with --file/--detach",
    ),
    files: Optional[List[str]] = typer.Option(
        None,
        "--file",
        "-f",
        help="Restore only this file (from TARGET commit, default HEAD)",
    ),
    detach: bool = typer.Option(
        False,
        "--detach",
        help="Check out TARGET commit with a detached HEAD",
    ),
) -> None:
    """Check out a branch, a detached commit, or single files."""
    repo = _open_repository()
    try:
        if files:
            for filename in files:
                repo.checkout_file(filename, target)
                console.print(f"  [cyan]↺[/cyan] {escape(filename)}")
        elif target is None:
            console.print("[bold red]Error:[/bold red] Incorrect operands.", style="red")
            raise typer.Exit(EXIT_USER_ERROR)
        elif detach:
            digest = repo.checkout_commit(target)
            console.print(f"HEAD is now at [yellow]{digest[:SHORT_HASH_LENGTH]}[/yellow]")
        else:
            repo.checkout_branch(target)
            console.print(f"Switched to branch [green]{escape(target)}[/green]")
    except SnapVCSError as e:
        _fail(e)


@app.command()
def branch(
    name: str = typer.Argument(..., help="Name of the new branch"),
) -> None:
    """Create a branch at HEAD."""
    repo = _open_repository()
    try:
        repo.branch(name)
    except SnapVCSError as e:
        _fail(e)


@app.command("rm-branch")
def rm_branch(
    name: str = typer.Argument(..., help="Branch to delete"),
) -> None:
    """Delete a branch pointer."""
    repo = _open_repository()
    try:
        repo.rm_branch(name)
    except SnapVCSError as e:
        _fail(e)


@app.command()
def reset(
    commit_id: str = typer.Argument(..., help="Commit id (full or abbreviated)"),
) -> None:
    """Restore a commit and move the current branch to it."""
    repo = _open_repository()
    try:
        digest = repo.reset(commit_id)
    except SnapVCSError as e:
        _fail(e)
    console.print(f"HEAD is now at [yellow]{digest[:SHORT_HASH_LENGTH]}[/yellow]")


def _report_merge(repo: Repository, branch_name: str, run_merge) -> None:
    try:
        result = run_merge()
    except FastForwardableError:
        try:
            repo.fast_forward(branch_name)
        except SnapVCSError as e:
            _fail(e)
        console.print("Current branch fast-forwarded.")
        return
    except SnapVCSError as e:
        _fail(e)

    console.print(
        f"[bold green]✓ Merged[/bold green] {escape(branch_name)} "
        f"[yellow]{result.commit[:SHORT_HASH_LENGTH]}[/yellow]"
    )
    if result.has_conflicts:
        console.print("[bold yellow]Encountered a merge conflict.[/bold yellow]")
        for filename in result.conflicts:
            console.print(f"  [yellow]![/yellow] {escape(filename)}")


@app.command()
def merge(
    branch_name: str = typer.Argument(..., help="Branch to merge into HEAD"),
) -> None:
    """Merge a branch into the current branch."""
    repo = _open_repository()
    _report_merge(repo, branch_name, lambda: repo.merge(branch_name))


@app.command("add-remote")
def add_remote(
    name: str = typer.Argument(..., help="Remote name"),
    path: str = typer.Argument(..., help="Path to the remote's .snapvcs directory"),
) -> None:
    """Register a remote repository."""
    repo = _open_repository()
    try:
        RemoteManager(repo).add_remote(name, path)
    except SnapVCSError as e:
        _fail(e)


@app.command("rm-remote")
def rm_remote(
    name: str = typer.Argument(..., help="Remote name"),
) -> None:
    """Forget a remote repository."""
    repo = _open_repository()
    try:
        RemoteManager(repo).rm_remote(name)
    except SnapVCSError as e:
        _fail(e)


@app.command()
def push(
    remote_name: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., help="Remote branch to update"),
) -> None:
    """Fast-forward a remote branch to HEAD."""
    repo = _open_repository()
    try:
        digest = RemoteManager(repo).push(remote_name, branch_name)
    except SnapVCSError as e:
        _fail(e)
    console.print(
        f"{escape(remote_name)}/{escape(branch_name)} -> "
        f"[yellow]{digest[:SHORT_HASH_LENGTH]}[/yellow]"
    )


@app.command()
def fetch(
    remote_name: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., help="Remote branch to fetch"),
) -> None:
    """Copy a remote branch into <remote>/<branch>."""
    repo = _open_repository()
    try:
        digest = RemoteManager(repo).fetch(remote_name, branch_name)
    except SnapVCSError as e:
        _fail(e)
    console.print(
        f"{escape(RemoteManager.tracking_branch(remote_name, branch_name))} -> "
        f"[yellow]{digest[:SHORT_HASH_LENGTH]}[/yellow]"
    )


@app.command()
def pull(
    remote_name: str = typer.Argument(..., help="Remote name"),
    branch_name: str = typer.Argument(..., help="Remote branch to pull"),
) -> None:
    """Fetch a remote branch and merge it into HEAD."""
    repo = _open_repository()
    manager = RemoteManager(repo)
    _report_merge(
        repo,
        manager.tracking_branch(remote_name, branch_name),
        lambda: manager.pull(remote_name, branch_name),
    )


@app.command()
def diff(
    rev1: Optional[str] = typer.Argument(None, help="Source commit (default: HEAD)"),
    rev2: Optional[str] = typer.Argument(None, help="Target commit (default: working tree)"),
    summary: bool = typer.Option(
        False,
        "--summary",
        help="Show only change summary",
    ),
) -> None:
    """Compare commits, or a commit and the working tree."""
    repo = _open_repository()
    engine = DiffEngine()
    try:
        file_diffs = list(repo.diff(rev1, rev2))
    except SnapVCSError as e:
        _fail(e)

    if not file_diffs:
        console.print("[dim]No changes[/dim]")
        return

    if summary:
        stats = engine.summarize_diff(file_diffs)
        console.print(f"[bold]{stats['total_files']} file(s) changed[/bold]")
        for change_type, count in stats["by_type"].items():
            if count:
                console.print(f"  {change_type}: {count}")
        console.print(
            f"  [green]+{stats['lines_added']}[/green] "
            f"[red]-{stats['lines_removed']}[/red]"
        )
        return

    for file_diff in file_diffs:
        for line in engine.format_diff(file_diff).splitlines():
            if line.startswith(("+++", "---", "diff ")):
                console.print(escape(line), style="bold")
            elif line.startswith("@@"):
                console.print(escape(line), style="cyan")
            elif line.startswith("+"):
                console.print(escape(line), style="green")
            elif line.startswith("-"):
                console.print(escape(line), style="red")
            else:
                console.print(escape(line))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
