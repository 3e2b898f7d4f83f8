"""Scan orchestration - pages through the inbox and collects matching messages."""

from __future__ import annotations

import logging
from typing import Iterable

from .classifier import Classifier
from .models import Match, Message, ScanMode
from .sources import PageSource

logger = logging.getLogger(__name__)


class Selection:
    """Which messages are selected during one scan pass, keyed by message id.

    Seeded with ids the caller selected up front; the scanner is the only
    writer while the scan runs.
    """

    def __init__(self, preselected: Iterable[str] | None = None) -> None:
        self._ids: set[str] = set(preselected or ())

    def select(self, message: Message) -> None:
        self._ids.add(message.id)

    def deselect(self, message: Message) -> None:
        self._ids.discard(message.id)

    def is_selected(self, message: Message) -> bool:
        return message.id in self._ids

    def count(self, messages: Iterable[Message]) -> int:
        return sum(1 for m in messages if self.is_selected(m))


def select_page_matches(
    messages: list[Message],
    classifier: Classifier,
    selection: Selection,
) -> list[Match]:
    """Apply the selection policy to one page and return its matches in page order.

    An empty selection on the page means "everything on the page"; a partial
    one restricts classification to the selected messages.
    """
    if selection.count(messages) == 0:
        for message in messages:
            selection.select(message)

    matches: list[Match] = []
    for message in messages:
        result = classifier.classify(message)
        if not result.is_match:
            selection.deselect(message)
        elif selection.is_selected(message):
            matches.append(Match(message=message, match_tag=result.match_tag))
    return matches


async def scan_inbox(
    source: PageSource,
    classifier: Classifier,
    mode: ScanMode,
    preselected: Iterable[str] | None = None,
) -> list[Match]:
    """Walk the inbox from page 1 and accumulate matches across pages.

    In RECENT mode the walk stops at the first page that contributes no
    matches; in ALL mode it continues until there is no next page. The
    source is returned to page 1 before this returns, whatever happened.
    """
    selection = Selection(preselected)
    matches: list[Match] = []

    try:
        logger.debug("Going to first page")
        await source.go_to_first_page()
        page_number = 1
        while True:
            page_matches = select_page_matches(
                source.get_current_page_messages(), classifier, selection
            )
            logger.debug("Found %d %s on page %d", len(page_matches), classifier.noun, page_number)
            matches.extend(page_matches)

            if mode is ScanMode.RECENT and not page_matches:
                break

            logger.debug("Going to next page")
            if not await source.go_to_next_page():
                break
            page_number += 1
    finally:
        await _restore_first_page(source)

    return matches


async def _restore_first_page(source: PageSource) -> None:
    logger.debug("Going to first page")
    try:
        await source.go_to_first_page()
    except Exception:  # noqa: BLE001
        logger.debug("Could not return to the first page", exc_info=True)
