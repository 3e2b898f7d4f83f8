"""Data models for Wikidot Inbox Cleaner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ScanMode(Enum):
    """When the inbox scan stops paging."""

    RECENT = "recent"  # stop at the first page without matches
    ALL = "all"  # visit every page


@dataclass(frozen=True)
class Message:
    """Snapshot of one inbox row, as shown in the message list preview."""

    id: str
    sender: str
    subject: str
    preview_body: str = ""
    sender_is_user: bool = False  # True when the sender is a user link, not a system account


@dataclass(frozen=True)
class Classification:
    """Outcome of running a classifier rule over one message."""

    is_match: bool
    match_tag: str | None = None


@dataclass(frozen=True)
class Match:
    """A message selected for deletion together with its reporting tag."""

    message: Message
    match_tag: str | None = None

    @property
    def id(self) -> str:
        return self.message.id


@dataclass
class MatchSummary:
    """Counts shown to the user before anything is deleted."""

    total: int = 0
    tag_counts: dict[str, int] = field(default_factory=dict)  # first-seen order
    untagged: int = 0


@dataclass(frozen=True)
class DeletionOutcome:
    """Result of a chunked deletion run.

    ``failure_chunk_index`` is set only when a chunk failed and records the
    first (and only) chunk that did. Chunks before it stay deleted.
    """

    chunks_attempted: int
    chunks_succeeded: int
    failure_chunk_index: int | None = None
    messages_deleted: int = 0
    cancelled: bool = False

    @property
    def failed(self) -> bool:
        return self.failure_chunk_index is not None

    @property
    def success(self) -> bool:
        return not self.failed and not self.cancelled
