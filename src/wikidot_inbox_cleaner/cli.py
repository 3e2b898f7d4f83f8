"""CLI entry point for Wikidot Inbox Cleaner."""

from __future__ import annotations

import asyncio

import click

from .auth import check_auth, get_wikidot_session
from .classifier import ApplicationRule, Classifier, SenderRule
from .cleaner import InboxCleaner
from .display import (
    BatchProgress,
    confirm_delete,
    console,
    display_deletion_result,
    display_match_summary,
    setup_logging,
)
from .models import DeletionOutcome, MatchSummary, ScanMode
from .wikidot_client import WikidotError, WikidotInbox, WikidotMessageDeleter


def _run_cleaner(classifier: Classifier, mode: ScanMode, dry_run: bool, yes: bool) -> None:
    """Wire the Wikidot collaborators and console surfaces into one cleaner run."""
    try:
        session = get_wikidot_session()
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    noun = classifier.noun
    status = console.status(f"Scanning your inbox for {noun}...")
    progress = BatchProgress(noun)

    async def confirm(summary: MatchSummary) -> bool:
        status.stop()
        display_match_summary(summary, noun)
        if summary.total == 0:
            console.print(f"[yellow]No {noun} found.[/yellow]")
            return False
        if dry_run:
            console.print(f"\n[yellow][DRY RUN] No {noun} were deleted.[/yellow]")
            return False
        if yes:
            return True
        if confirm_delete(summary, noun):
            return True
        console.print("[dim]Cancelled.[/dim]")
        return False

    def report_result(outcome: DeletionOutcome, summary: MatchSummary) -> None:
        progress.stop(completed=outcome.chunks_succeeded)
        display_deletion_result(outcome, summary, noun)

    cleaner = InboxCleaner(
        WikidotInbox(session),
        WikidotMessageDeleter(session),
        classifier,
        confirm,
        on_before_batch=progress,
        report_result=report_result,
    )

    status.start()
    try:
        outcome = asyncio.run(cleaner.run(mode))
    except WikidotError as e:
        raise click.ClickException(str(e)) from e
    finally:
        status.stop()
        progress.stop()

    if outcome is not None and not outcome.success:
        raise SystemExit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="wikidot-inbox-cleaner")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Wikidot Inbox Cleaner - bulk-delete applications and messages from your Wikidot inbox."""
    setup_logging(verbose)


@cli.command()
@click.option(
    "--all",
    "scan_all",
    is_flag=True,
    help="Scan every page instead of stopping at the first page without applications.",
)
@click.option("--dry-run", is_flag=True, help="Scan and show what would be deleted, then stop.")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
def applications(scan_all: bool, dry_run: bool, yes: bool) -> None:
    """Delete membership application notices.

    By default deletes recent applications: the first page, then the second,
    and so on until a page with no applications is found.
    """
    mode = ScanMode.ALL if scan_all else ScanMode.RECENT
    _run_cleaner(ApplicationRule(), mode, dry_run, yes)


@cli.command(name="from-user")
@click.argument("username", default="")
@click.option("--recent", is_flag=True, help="Stop at the first page without messages from the user.")
@click.option("--dry-run", is_flag=True, help="Scan and show what would be deleted, then stop.")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
def from_user(username: str, recent: bool, dry_run: bool, yes: bool) -> None:
    """Delete all messages sent by USERNAME (exact, case-sensitive)."""
    if not username:
        console.print("[dim]No username given, nothing to do.[/dim]")
        return
    mode = ScanMode.RECENT if recent else ScanMode.ALL
    _run_cleaner(SenderRule(username), mode, dry_run, yes)


@cli.command()
def auth() -> None:
    """Test the configured Wikidot session."""
    if not check_auth():
        raise SystemExit(1)
