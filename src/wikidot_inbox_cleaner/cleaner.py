"""Cleaning workflow - scan, confirm, delete in batches, report."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable

from .classifier import ApplicationRule, Classifier, SenderRule, summarize_matches
from .models import DeletionOutcome, MatchSummary, ScanMode
from .pipeline import BeforeBatch, delete_all
from .scanner import scan_inbox
from .sources import BatchDeleter, PageSource

logger = logging.getLogger(__name__)

Confirm = Callable[[MatchSummary], Awaitable[bool]]
ReportResult = Callable[[DeletionOutcome, MatchSummary], None]


class InboxCleaner:
    """Runs one scan-and-delete pass with injected collaborators.

    Nothing is kept between runs; every call to :meth:`run` scans afresh.
    """

    def __init__(
        self,
        source: PageSource,
        deleter: BatchDeleter,
        classifier: Classifier,
        confirm: Confirm,
        on_before_batch: BeforeBatch | None = None,
        report_result: ReportResult | None = None,
    ) -> None:
        self.source = source
        self.deleter = deleter
        self.classifier = classifier
        self.confirm = confirm
        self.on_before_batch = on_before_batch
        self.report_result = report_result

    async def run(
        self,
        mode: ScanMode,
        preselected: Iterable[str] | None = None,
    ) -> DeletionOutcome | None:
        """Scan with ``mode`` and delete the matches once confirmed.

        Returns None when the caller declined; otherwise the deletion outcome,
        which may describe a partial failure. The inbox is put back on its
        first page at the end in every case.
        """
        try:
            logger.info("Scanning inbox for %s (%s)", self.classifier.noun, mode.value)
            matches = await scan_inbox(self.source, self.classifier, mode, preselected)
            summary = summarize_matches(matches)

            if not await self.confirm(summary):
                logger.info("Deletion of %d %s declined", summary.total, self.classifier.noun)
                return None

            outcome = await delete_all(
                [m.id for m in matches],
                self.deleter,
                on_before_batch=self.on_before_batch,
            )
            if self.report_result is not None:
                self.report_result(outcome, summary)
            return outcome
        finally:
            try:
                await self.source.go_to_first_page()
            except Exception:  # noqa: BLE001
                logger.debug("Could not return to the first page", exc_info=True)


async def delete_applications(
    source: PageSource,
    deleter: BatchDeleter,
    mode: ScanMode,
    confirm: Confirm,
    on_before_batch: BeforeBatch | None = None,
    report_result: ReportResult | None = None,
) -> DeletionOutcome | None:
    """Delete membership applications, recent ones or all of them."""
    cleaner = InboxCleaner(source, deleter, ApplicationRule(), confirm, on_before_batch, report_result)
    return await cleaner.run(mode)


async def delete_messages_from_user(
    username: str,
    source: PageSource,
    deleter: BatchDeleter,
    confirm: Confirm,
    mode: ScanMode = ScanMode.ALL,
    on_before_batch: BeforeBatch | None = None,
    report_result: ReportResult | None = None,
) -> DeletionOutcome | None:
    """Delete every message sent by ``username``. An empty username does nothing."""
    if not username:
        return None
    cleaner = InboxCleaner(source, deleter, SenderRule(username), confirm, on_before_batch, report_result)
    return await cleaner.run(mode)
