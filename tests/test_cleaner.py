"""Tests for the scan-confirm-delete workflow."""

import asyncio

import pytest

from wikidot_inbox_cleaner.classifier import ApplicationRule
from wikidot_inbox_cleaner.cleaner import InboxCleaner, delete_applications, delete_messages_from_user
from wikidot_inbox_cleaner.models import ScanMode

from conftest import FakeDeleter, FakeInbox, make_application, make_message


def _confirm(answer: bool, seen: list):
    async def confirm(summary):
        seen.append(summary)
        return answer

    return confirm


def test_run_deletes_after_confirmation(three_page_inbox, deleter):
    seen: list = []
    reported: list = []
    cleaner = InboxCleaner(
        three_page_inbox,
        deleter,
        ApplicationRule(),
        _confirm(True, seen),
        report_result=lambda outcome, summary: reported.append((outcome, summary)),
    )
    outcome = asyncio.run(cleaner.run(ScanMode.ALL))

    assert outcome.success
    assert deleter.calls == [["a1", "a2", "a3", "b0", "b1", "b2", "b3", "b4"]]
    summary = seen[0]
    assert summary.total == 8
    assert summary.tag_counts == {"scp-wiki": 3, "other-site": 5}
    assert reported == [(outcome, summary)]


def test_run_declined_has_no_side_effects(three_page_inbox, deleter):
    reported: list = []
    cleaner = InboxCleaner(
        three_page_inbox,
        deleter,
        ApplicationRule(),
        _confirm(False, []),
        report_result=lambda outcome, summary: reported.append(outcome),
    )
    assert asyncio.run(cleaner.run(ScanMode.RECENT)) is None
    assert deleter.calls == []
    assert reported == []


def test_run_resets_to_first_page_on_failure(three_page_inbox):
    deleter = FakeDeleter(fail_on=[0])
    cleaner = InboxCleaner(three_page_inbox, deleter, ApplicationRule(), _confirm(True, []))
    outcome = asyncio.run(cleaner.run(ScanMode.ALL))

    assert outcome.failed
    assert outcome.failure_chunk_index == 0
    assert three_page_inbox.calls[-1] == "first"
    assert three_page_inbox.index == 0


def test_run_resets_to_first_page_when_confirm_raises(three_page_inbox, deleter):
    async def confirm(summary):
        raise RuntimeError("prompt closed")

    cleaner = InboxCleaner(three_page_inbox, deleter, ApplicationRule(), confirm)
    with pytest.raises(RuntimeError, match="prompt closed"):
        asyncio.run(cleaner.run(ScanMode.ALL))
    assert three_page_inbox.calls[-1] == "first"


def test_progress_is_forwarded(deleter):
    inbox = FakeInbox([[make_application(str(i)) for i in range(150)]])
    progress: list = []

    async def on_before_batch(index, total, size):
        progress.append((index, total, size))

    cleaner = InboxCleaner(inbox, deleter, ApplicationRule(), _confirm(True, []), on_before_batch)
    asyncio.run(cleaner.run(ScanMode.RECENT))
    assert progress == [(0, 2, 100), (1, 2, 50)]


def test_delete_applications_recent(three_page_inbox, deleter):
    outcome = asyncio.run(
        delete_applications(three_page_inbox, deleter, ScanMode.RECENT, _confirm(True, []))
    )
    assert outcome.messages_deleted == 3
    assert deleter.calls == [["a1", "a2", "a3"]]


def test_delete_messages_from_user(deleter):
    inbox = FakeInbox(
        [
            [make_message("m1", sender="Bob"), make_message("m2", sender="Alice")],
            [make_message("m3", sender="Bob")],
            [make_message("m4", sender="Alice")],
        ]
    )
    outcome = asyncio.run(delete_messages_from_user("Alice", inbox, deleter, _confirm(True, [])))
    assert outcome.success
    assert deleter.calls == [["m2", "m4"]]


def test_delete_messages_from_user_without_username_is_noop(three_page_inbox, deleter):
    seen: list = []
    outcome = asyncio.run(delete_messages_from_user("", three_page_inbox, deleter, _confirm(True, seen)))
    assert outcome is None
    assert seen == []
    assert three_page_inbox.calls == []
    assert deleter.calls == []
