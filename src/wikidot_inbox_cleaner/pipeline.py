"""Chunked, paced deletion of an accumulated set of message ids."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from .constants import MAX_BATCH_SIZE
from .models import DeletionOutcome
from .sources import BatchDeleter

logger = logging.getLogger(__name__)

BeforeBatch = Callable[[int, int, int], Awaitable[None]]


def make_batches(message_ids: Sequence[str], batch_size: int = MAX_BATCH_SIZE) -> list[list[str]]:
    """Split ids into contiguous chunks of at most ``batch_size``, preserving order."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(message_ids[i : i + batch_size]) for i in range(0, len(message_ids), batch_size)]


async def delete_all(
    message_ids: Sequence[str],
    deleter: BatchDeleter,
    on_before_batch: BeforeBatch | None = None,
    cancel: asyncio.Event | None = None,
    batch_size: int = MAX_BATCH_SIZE,
) -> DeletionOutcome:
    """Delete ids chunk by chunk, stopping at the first failed chunk.

    ``on_before_batch(index, total, size)`` is awaited before every chunk; it
    is where callers report progress and pace requests. A failed chunk is
    neither retried nor rolled back, and later chunks are never sent.
    ``cancel`` is only checked between chunks.
    """
    if not message_ids:
        return DeletionOutcome(chunks_attempted=0, chunks_succeeded=0)

    batches = make_batches(message_ids, batch_size)
    total = len(batches)
    deleted = 0

    for index, batch in enumerate(batches):
        if cancel is not None and cancel.is_set():
            logger.info("Deletion cancelled before batch %d of %d", index + 1, total)
            return DeletionOutcome(
                chunks_attempted=index,
                chunks_succeeded=index,
                messages_deleted=deleted,
                cancelled=True,
            )

        if on_before_batch is not None:
            await on_before_batch(index, total, len(batch))

        try:
            await deleter.delete(batch)
        except Exception:  # noqa: BLE001
            logger.exception("Deletes failed on batch %d of %d", index + 1, total)
            return DeletionOutcome(
                chunks_attempted=index + 1,
                chunks_succeeded=index,
                failure_chunk_index=index,
                messages_deleted=deleted,
            )

        deleted += len(batch)
        logger.debug("Deleted batch %d of %d (%d messages)", index + 1, total, len(batch))

    return DeletionOutcome(chunks_attempted=total, chunks_succeeded=total, messages_deleted=deleted)
