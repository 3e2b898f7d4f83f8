"""Shared fixtures for tests."""

from __future__ import annotations

from typing import Sequence

import pytest

from wikidot_inbox_cleaner.constants import APPLICATION_SUBJECT, SYSTEM_ACCOUNT
from wikidot_inbox_cleaner.models import Message


def make_application(message_id: str, site: str = "scp-wiki") -> Message:
    return Message(
        id=message_id,
        sender=SYSTEM_ACCOUNT,
        subject=APPLICATION_SUBJECT,
        preview_body=f"Someone applied for membership on {site}, one of your sites. Review it",
    )


def make_message(message_id: str, sender: str = "Alice", subject: str = "Hello") -> Message:
    return Message(
        id=message_id,
        sender=sender,
        subject=subject,
        preview_body="Just saying hi",
        sender_is_user=True,
    )


class FakeInbox:
    """In-memory page source that records every navigation."""

    def __init__(self, pages: list[list[Message]]) -> None:
        self.pages = pages
        self.index = 0
        self.calls: list[str] = []

    def get_current_page_messages(self) -> list[Message]:
        if not self.pages:
            return []
        return list(self.pages[self.index])

    async def go_to_first_page(self) -> bool:
        self.calls.append("first")
        if self.index == 0:
            return False
        self.index = 0
        return True

    async def go_to_next_page(self) -> bool:
        self.calls.append("next")
        if self.index + 1 >= len(self.pages):
            return False
        self.index += 1
        return True


class FakeDeleter:
    """Records delete calls; fails on the batch numbers given in ``fail_on``."""

    def __init__(self, fail_on: Sequence[int] = ()) -> None:
        self.fail_on = set(fail_on)
        self.calls: list[list[str]] = []

    async def delete(self, message_ids: Sequence[str]) -> None:
        self.calls.append(list(message_ids))
        if len(self.calls) - 1 in self.fail_on:
            raise RuntimeError("server said no")


@pytest.fixture
def application_message() -> Message:
    return make_application("1001", site="wanderers-library")


@pytest.fixture
def user_message() -> Message:
    return make_message("2001", sender="Croquembouche", subject="Re: your article")


@pytest.fixture
def three_page_inbox() -> FakeInbox:
    """Pages with 3, 0 and 5 applications, padded with ordinary messages."""
    return FakeInbox(
        [
            [make_application("a1"), make_message("m1"), make_application("a2"), make_application("a3")],
            [make_message("m2"), make_message("m3")],
            [make_application(f"b{i}", site="other-site") for i in range(5)] + [make_message("m4")],
        ]
    )


@pytest.fixture
def deleter() -> FakeDeleter:
    return FakeDeleter()
