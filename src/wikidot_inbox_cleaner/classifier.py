"""Rules deciding which inbox messages get deleted."""

from __future__ import annotations

import re
from typing import Iterable, Protocol

from .constants import APPLICATION_PREVIEW_PATTERN, APPLICATION_SUBJECT, SYSTEM_ACCOUNT
from .models import Classification, Match, MatchSummary, Message

_APPLICATION_RE = re.compile(APPLICATION_PREVIEW_PATTERN)


class Classifier(Protocol):
    """A pure rule over a single message."""

    noun: str

    def classify(self, message: Message) -> Classification: ...


class ApplicationRule:
    """Match membership application notices sent by the Wikidot system account.

    The site the application was for is pulled from the preview text and used
    as the match tag. A notice whose preview does not parse is not treated as
    an application, so other system messages that happen to share the subject
    are left alone.
    """

    noun = "applications"

    def classify(self, message: Message) -> Classification:
        from_system = not message.sender_is_user and message.sender == SYSTEM_ACCOUNT
        if not from_system or message.subject != APPLICATION_SUBJECT:
            return Classification(is_match=False)

        m = _APPLICATION_RE.search(message.preview_body)
        if m is None:
            return Classification(is_match=False)
        return Classification(is_match=True, match_tag=m.group(1))


class SenderRule:
    """Match every message sent by one user (exact, case-sensitive)."""

    noun = "messages"

    def __init__(self, username: str) -> None:
        self.username = username

    def classify(self, message: Message) -> Classification:
        return Classification(is_match=message.sender == self.username)


def summarize_matches(matches: Iterable[Match]) -> MatchSummary:
    """Count matches overall and per tag; untagged matches are counted apart."""
    summary = MatchSummary()
    for match in matches:
        summary.total += 1
        if match.match_tag is None:
            summary.untagged += 1
        else:
            summary.tag_counts[match.match_tag] = summary.tag_counts.get(match.match_tag, 0) + 1
    return summary
