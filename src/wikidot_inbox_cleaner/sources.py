"""Interfaces the scanner and the deletion pipeline drive."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Message


class PageSource(Protocol):
    """A paginated inbox with a single "current page" cursor.

    Navigation methods only return once the requested page has finished
    loading, so ``get_current_page_messages`` afterwards reflects it.
    """

    def get_current_page_messages(self) -> list[Message]: ...

    async def go_to_first_page(self) -> bool:
        """Go back to page 1. Returns False when no navigation was needed."""
        ...

    async def go_to_next_page(self) -> bool:
        """Advance one page. Returns False when there is no next page."""
        ...


class BatchDeleter(Protocol):
    """Deletes one chunk of message ids per call, raising on failure."""

    async def delete(self, message_ids: Sequence[str]) -> None: ...
