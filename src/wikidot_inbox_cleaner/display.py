"""Rich-based display functions for Wikidot Inbox Cleaner."""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from .constants import BATCH_DELAY_SECONDS
from .models import DeletionOutcome, MatchSummary

console = Console()

CONFIRM_WORD = "DELETE"


def setup_logging(verbose: bool = False) -> None:
    """Route package logging through Rich; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def display_match_summary(summary: MatchSummary, noun: str) -> None:
    """Show how many messages matched and, when tagged, where they came from."""
    if summary.tag_counts:
        table = Table(title=f"{noun.capitalize()} by site")
        table.add_column("Site")
        table.add_column("Count", justify="right")
        for tag, count in summary.tag_counts.items():
            table.add_row(tag, str(count))
        if summary.untagged:
            table.add_row("[dim](no site)[/dim]", str(summary.untagged))
        console.print(table)

    console.print(Panel(f"Total {noun} found: {summary.total}", title="Summary"))


def create_progress(description: str) -> Progress:
    """Create a configured Rich Progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.description}"),
        TimeElapsedColumn(),
        console=console,
    )


def confirm_delete(summary: MatchSummary, noun: str) -> bool:
    """Prompt the user to confirm deleting the matched messages."""
    lines = [f"[bold]Delete {summary.total} {noun}?[/bold]", ""]
    for tag, count in summary.tag_counts.items():
        lines.append(f"  - {tag}: {count}")
    if summary.tag_counts and summary.untagged:
        lines.append(f"  - (no site): {summary.untagged}")
    if summary.tag_counts:
        lines.append("")
    lines.append("This is [bold]not reversible[/bold].")

    console.print(Panel("\n".join(lines), title="Confirm Delete"))

    answer = Prompt.ask(f'[bold red]Type "{CONFIRM_WORD}" to confirm[/bold red]', console=console)
    return answer == CONFIRM_WORD


def display_deletion_result(outcome: DeletionOutcome, summary: MatchSummary, noun: str) -> None:
    """Display the final outcome of a deletion run."""
    if outcome.success:
        console.print(
            Panel(
                f"[bold green]Deleted {outcome.messages_deleted} {noun}.[/bold green]",
                title="Done",
            )
        )
        return

    remaining = summary.total - outcome.messages_deleted
    if outcome.cancelled:
        headline = "[bold yellow]Deletion cancelled.[/bold yellow]"
    else:
        headline = (
            f"[bold red]Failed to delete {noun} in batch "
            f"{outcome.failure_chunk_index + 1}.[/bold red]"
        )
    console.print(
        Panel(
            f"{headline}\n\n"
            f"Batches completed: {outcome.chunks_succeeded} of {outcome.chunks_attempted} attempted\n"
            f"Deleted: {outcome.messages_deleted}  |  Not deleted: {remaining}\n"
            "Deleted messages are not restored. Run the command again to retry the rest.",
            title="Error" if outcome.failed else "Stopped",
        )
    )


class BatchProgress:
    """Before-batch callback that shows batch progress and paces requests.

    A single batch is sent straight away with no progress bar.
    """

    def __init__(self, noun: str, delay: float = BATCH_DELAY_SECONDS) -> None:
        self.progress = create_progress(f"Deleting {noun}")
        self.delay = delay
        self._task: TaskID | None = None

    async def __call__(self, index: int, total: int, size: int) -> None:
        if total == 1:
            return
        if self._task is None:
            self.progress.start()
            self._task = self.progress.add_task("", total=total)
        self.progress.update(
            self._task,
            completed=index,
            description=f"Batch {index + 1} of {total} ({size} messages)",
        )
        await asyncio.sleep(self.delay)

    def stop(self, completed: int | None = None) -> None:
        if self._task is None:
            return
        if completed is not None:
            self.progress.update(self._task, completed=completed)
        self.progress.stop()
        self._task = None
