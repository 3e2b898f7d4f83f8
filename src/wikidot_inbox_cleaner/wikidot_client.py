"""Wikidot client functions for reading the inbox and removing messages."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Sequence

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from wikidot_inbox_cleaner.constants import (
    AJAX_CONNECTOR_URL,
    INBOX_MODULE,
    MESSAGE_ACTION,
    NEXT_PAGE_LABEL,
    REMOVE_MESSAGES_EVENT,
    REQUEST_TIMEOUT,
    RETRYABLE_STATUS_CODES,
    TOKEN_COOKIE,
)
from wikidot_inbox_cleaner.models import Message

logger = logging.getLogger(__name__)

_VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)


class WikidotError(RuntimeError):
    """Wikidot could not be reached or refused a request."""


@dataclass
class InboxPage:
    """One parsed page of the inbox message list."""

    messages: list[Message] = field(default_factory=list)
    current_page: int = 1
    has_next: bool = False


def _normalize(text: str) -> str:
    return " ".join(text.split())


class _InboxParser(HTMLParser):
    """Collects message rows and pager state from DMInboxModule markup.

    Rows are ``tr.message`` elements holding a checkbox whose value is the
    message id, ``.from .printuser`` (user links carry ``avatarhover``),
    ``.subject`` and ``.preview``. The pager has a ``.current`` page marker
    and ``.target`` links, the last of which reads "next »" when there is a
    following page.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.messages: list[Message] = []
        self.has_pager = False
        self.current_page: int | None = None
        self.last_target_text: str | None = None
        self._stack: list[tuple[str, list[str]]] = []
        self._buffers: dict[str, list[str]] = {}
        self._row: dict | None = None

    def handle_starttag(self, tag, attrs):  # noqa: ANN001
        attributes = dict(attrs)
        classes = (attributes.get("class") or "").split()
        captures: list[str] = []

        if tag == "tr" and "message" in classes:
            self._row = {"id": "", "sender": None, "sender_is_user": False, "subject": "", "preview_body": ""}
            captures.append("row")

        if self._row is not None:
            if tag == "input" and attributes.get("type") == "checkbox" and not self._row["id"]:
                self._row["id"] = attributes.get("value") or ""
            if "from" in classes:
                captures.append("from")
            if (
                "printuser" in classes
                and "from" in self._buffers
                and "sender" not in self._buffers
                and self._row["sender"] is None
            ):
                self._row["sender_is_user"] = "avatarhover" in classes
                captures.append("sender")
            if "subject" in classes:
                captures.append("subject")
            if "preview" in classes:
                captures.append("preview_body")

        if "pager" in classes:
            self.has_pager = True
            captures.append("pager")
        elif "pager" in self._buffers:
            if "current" in classes:
                captures.append("current")
            if "target" in classes:
                captures.append("target")

        if tag in _VOID_TAGS:
            return
        for key in captures:
            self._buffers[key] = []
        self._stack.append((tag, captures))

    def handle_endtag(self, tag):  # noqa: ANN001
        if tag in _VOID_TAGS:
            return
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index][0] == tag:
                break
        else:
            return
        while len(self._stack) > index:
            _, captures = self._stack.pop()
            for key in captures:
                self._finish(key, _normalize("".join(self._buffers.pop(key, []))))

    def handle_data(self, data):  # noqa: ANN001
        for buffer in self._buffers.values():
            buffer.append(data)

    def _finish(self, key: str, text: str) -> None:
        if key == "row":
            row, self._row = self._row, None
            if row and row["id"]:
                self.messages.append(
                    Message(
                        id=row["id"],
                        sender=row["sender"] or "",
                        subject=row["subject"],
                        preview_body=row["preview_body"],
                        sender_is_user=row["sender_is_user"],
                    )
                )
        elif key in ("sender", "subject", "preview_body") and self._row is not None:
            self._row[key] = text
        elif key == "current":
            try:
                self.current_page = int(text)
            except ValueError:
                logger.debug("Unreadable current page marker: %r", text)
        elif key == "target":
            self.last_target_text = text


def parse_inbox_page(html: str) -> InboxPage:
    """Parse the HTML body returned by the inbox module.

    A page without a pager is a single-page inbox; a pager whose last link is
    not "next »" is on its final page.
    """
    parser = _InboxParser()
    parser.feed(html)
    parser.close()
    return InboxPage(
        messages=parser.messages,
        current_page=parser.current_page or 1,
        has_next=parser.has_pager and parser.last_target_text == NEXT_PAGE_LABEL,
    )


def _is_retryable_request_error(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    return (
        isinstance(exc, requests.HTTPError)
        and exc.response is not None
        and exc.response.status_code in RETRYABLE_STATUS_CODES
    )


def call_module(session: requests.Session, params: dict) -> dict:
    """POST to the AJAX module connector and return the decoded reply.

    The ``wikidot_token7`` form field must echo the cookie of the same name.
    """
    data = dict(params)
    data[TOKEN_COOKIE] = session.cookies.get(TOKEN_COOKIE, "")

    resp = session.post(AJAX_CONNECTOR_URL, data=data, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    try:
        payload = resp.json()
    except ValueError as e:
        raise WikidotError("Wikidot returned a response that is not JSON") from e

    if payload.get("status") != "ok":
        message = payload.get("message") or "no details"
        raise WikidotError(f"Wikidot returned status {payload.get('status')!r}: {message}")
    return payload


@retry(
    retry=retry_if_exception(_is_retryable_request_error),
    wait=wait_exponential(multiplier=1, min=1, max=30),
    stop=stop_after_attempt(5),
    reraise=True,
)
def fetch_inbox_page(session: requests.Session, page: int) -> InboxPage:
    """Fetch and parse one page of the inbox."""
    payload = call_module(session, {"moduleName": INBOX_MODULE, "page": page})
    return parse_inbox_page(payload.get("body", ""))


def remove_messages(session: requests.Session, message_ids: Sequence[str]) -> None:
    """Delete messages in one request. Never retried; a failure raises WikidotError."""
    params = {
        "moduleName": "Empty",
        "action": MESSAGE_ACTION,
        "event": REMOVE_MESSAGES_EVENT,
        "messages": ",".join(message_ids),
    }
    try:
        call_module(session, params)
    except requests.RequestException as e:
        raise WikidotError(f"Failed to delete {len(message_ids)} messages: {e}") from e


class WikidotInbox:
    """Page source over the Wikidot inbox, one page in memory at a time."""

    def __init__(self, session: requests.Session) -> None:
        self.session = session
        self._page: InboxPage | None = None

    @property
    def current_page(self) -> int | None:
        return self._page.current_page if self._page else None

    def get_current_page_messages(self) -> list[Message]:
        if self._page is None:
            return []
        return list(self._page.messages)

    async def go_to_first_page(self) -> bool:
        """Reload page 1, even when already on it, so deletions show up.

        Returns False when the cursor was already on page 1.
        """
        moved = self._page is None or self._page.current_page != 1
        await self._load(1)
        return moved

    async def go_to_next_page(self) -> bool:
        if self._page is None or not self._page.has_next:
            return False
        await self._load(self._page.current_page + 1)
        return True

    async def _load(self, page: int) -> None:
        try:
            self._page = await asyncio.to_thread(fetch_inbox_page, self.session, page)
        except requests.RequestException as e:
            raise WikidotError(f"Could not load inbox page {page}: {e}") from e


class WikidotMessageDeleter:
    """Batch deleter backed by the DashboardMessageAction removeMessages event."""

    def __init__(self, session: requests.Session) -> None:
        self.session = session

    async def delete(self, message_ids: Sequence[str]) -> None:
        await asyncio.to_thread(remove_messages, self.session, list(message_ids))
