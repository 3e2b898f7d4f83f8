"""Tests for the chunked deletion pipeline."""

import asyncio

import pytest

from wikidot_inbox_cleaner.models import DeletionOutcome
from wikidot_inbox_cleaner.pipeline import delete_all, make_batches

from conftest import FakeDeleter


def _ids(n: int) -> list[str]:
    return [str(i) for i in range(n)]


def test_make_batches_sizes():
    batches = make_batches(_ids(250))
    assert [len(b) for b in batches] == [100, 100, 50]
    assert batches[0][0] == "0"
    assert batches[2][-1] == "249"


def test_make_batches_exact_multiple():
    assert [len(b) for b in make_batches(_ids(200))] == [100, 100]


def test_make_batches_rejects_zero_size():
    with pytest.raises(ValueError):
        make_batches(_ids(3), batch_size=0)


def test_delete_all_in_order(deleter):
    progress: list[tuple[int, int, int]] = []

    async def on_before_batch(index, total, size):
        progress.append((index, total, size))

    ids = _ids(250)
    outcome = asyncio.run(delete_all(ids, deleter, on_before_batch))

    assert outcome == DeletionOutcome(chunks_attempted=3, chunks_succeeded=3, messages_deleted=250)
    assert outcome.success
    assert [len(c) for c in deleter.calls] == [100, 100, 50]
    assert [i for call in deleter.calls for i in call] == ids
    assert progress == [(0, 3, 100), (1, 3, 100), (2, 3, 50)]


def test_partial_failure_stops_pipeline():
    deleter = FakeDeleter(fail_on=[1])
    outcome = asyncio.run(delete_all(_ids(250), deleter))

    assert outcome.chunks_attempted == 2
    assert outcome.chunks_succeeded == 1
    assert outcome.failure_chunk_index == 1
    assert outcome.messages_deleted == 100
    assert outcome.failed and not outcome.success
    # batch 3 is never sent
    assert len(deleter.calls) == 2


def test_failure_on_first_batch():
    deleter = FakeDeleter(fail_on=[0])
    outcome = asyncio.run(delete_all(_ids(5), deleter))
    assert outcome == DeletionOutcome(chunks_attempted=1, chunks_succeeded=0, failure_chunk_index=0)


def test_empty_match_set_short_circuits(deleter):
    calls = []

    async def on_before_batch(index, total, size):
        calls.append(index)

    outcome = asyncio.run(delete_all([], deleter, on_before_batch))
    assert outcome == DeletionOutcome(chunks_attempted=0, chunks_succeeded=0)
    assert deleter.calls == []
    assert calls == []


def test_progress_callback_runs_before_each_delete(deleter):
    events = []

    async def on_before_batch(index, total, size):
        events.append(("before", index, len(deleter.calls)))

    asyncio.run(delete_all(_ids(150), deleter, on_before_batch))
    assert events == [("before", 0, 0), ("before", 1, 1)]


def test_cancel_between_batches(deleter):
    async def run():
        cancel = asyncio.Event()

        async def on_before_batch(index, total, size):
            if index == 1:
                cancel.set()

        return await delete_all(_ids(300), deleter, on_before_batch, cancel=cancel)

    outcome = asyncio.run(run())
    # batch 2 was already under way when cancel was set, so it completes
    assert outcome.chunks_succeeded == 2
    assert outcome.chunks_attempted == 2
    assert outcome.cancelled is True
    assert outcome.failure_chunk_index is None
    assert outcome.messages_deleted == 200
    assert len(deleter.calls) == 2
