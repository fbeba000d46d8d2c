import asyncio

import pytest

from app.core.translation.errors import ApiNotConfiguredError, ProviderError, RateLimitError
from app.core.translation.models import GlossaryEntry, PromptTemplateData
from app.core.translation.queue import QueueRegistry
from app.models.database import GlossaryTerm

from conftest import FakeInvoker


async def wait_until(predicate, timeout: float = 5.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)


async def test_23_rows_run_as_three_ordered_batches(make_queue, add_rows, statuses):
    ids = await add_rows(23)
    invoker = FakeInvoker()
    queue = make_queue(invoker)

    snapshot = await queue.enqueue(ids)
    assert snapshot["pending_batches"] == 3
    assert snapshot["progress"] == {"current": 0, "total": 3}
    assert snapshot["is_processing"] is True

    await queue.join()

    assert [len(c) for c in invoker.calls] == [10, 10, 3]
    assert [i for call in invoker.calls for i in call] == ids
    assert await statuses(ids) == ["review"] * 23
    assert queue.snapshot()["progress"] == {"current": 0, "total": 0}
    assert queue.is_processing is False
    assert queue.pending_batches == 0


async def test_rows_are_queued_when_enqueue_returns(make_queue, add_rows, statuses):
    ids = await add_rows(23)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)

    current = await statuses(ids)
    assert current[:10] == ["translating"] * 10
    assert current[10:] == ["queued"] * 13

    invoker.release.set()
    await queue.join()


async def test_results_are_written_to_rows(make_queue, add_rows, row_store, project):
    ids = await add_rows(2)
    queue = make_queue(FakeInvoker())
    template = PromptTemplateData(name="Banner", prompt_text="Short and punchy")

    await queue.enqueue(ids, template)
    await queue.join()

    rows = await row_store.list_rows(project.id)
    assert rows[0].target_text == {"my": "my:Text 0", "zh": "zh:Text 0"}
    assert rows[0].template_used == "Banner"
    assert rows[0].translated_at is not None
    assert rows[0].error_message is None


async def test_progress_is_monotonic_and_resets_on_drain(make_queue, add_rows):
    ids = await add_rows(23)
    seen = []
    queue = None

    def record(call_number):
        seen.append(queue.progress.current)

    queue = make_queue(FakeInvoker(on_call=record))
    await queue.enqueue(ids)
    await queue.join()

    assert seen == [0, 1, 2]
    assert queue.progress.current == 0 and queue.progress.total == 0


async def test_rows_already_queued_are_not_enqueued_twice(make_queue, add_rows):
    ids = await add_rows(20)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids[:15])
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)

    snapshot = await queue.enqueue(ids[5:20])
    # Only rows 15-19 are new; progress restarts for the new job
    assert snapshot["pending_batches"] == 3
    assert snapshot["progress"] == {"current": 0, "total": 1}

    invoker.release.set()
    await queue.join()

    assert invoker.calls == [ids[:10], ids[10:15], ids[15:20]]
    flat = [i for call in invoker.calls for i in call]
    assert len(flat) == len(set(flat))


async def test_progress_never_exceeds_total(make_queue, add_rows):
    ids = await add_rows(25)
    invoker = FakeInvoker(block_on_call=1)
    seen = []
    queue = make_queue(invoker)
    invoker.on_call = lambda n: seen.append((queue.progress.current, queue.progress.total))

    await queue.enqueue(ids[:20])
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await queue.enqueue(ids[20:])

    invoker.release.set()
    await queue.join()

    assert all(current <= total for current, total in seen)
    assert seen[-1] == (1, 1)


async def test_empty_enqueue_is_a_noop(make_queue):
    queue = make_queue(FakeInvoker(configured=False))

    snapshot = await queue.enqueue([])

    assert snapshot["is_processing"] is False
    assert snapshot["pending_batches"] == 0


async def test_api_not_configured_leaves_rows_pending(make_queue, add_rows, statuses):
    ids = await add_rows(12)
    invoker = FakeInvoker(configured=False)
    queue = make_queue(invoker)

    with pytest.raises(ApiNotConfiguredError) as exc_info:
        await queue.enqueue(ids)

    assert exc_info.value.code == "API_NOT_CONFIGURED"
    assert await statuses(ids) == ["pending"] * 12
    assert queue.is_processing is False
    assert queue.pending_batches == 0
    assert invoker.calls == []


async def test_cancel_during_first_batch_reverts_everything(make_queue, add_rows, statuses):
    ids = await add_rows(23)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)

    snapshot = await queue.cancel()

    assert invoker.aborted is True
    assert len(invoker.calls) == 1
    assert await statuses(ids) == ["pending"] * 23
    assert snapshot["pending_batches"] == 0
    assert snapshot["progress"] == {"current": 0, "total": 0}
    assert snapshot["is_processing"] is False


async def test_cancel_after_first_batch_keeps_finished_rows(make_queue, add_rows, statuses):
    ids = await add_rows(23)
    invoker = FakeInvoker(block_on_call=2)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await queue.cancel()

    current = await statuses(ids)
    assert current[:10] == ["review"] * 10
    assert current[10:] == ["pending"] * 13


async def test_cancel_interrupts_throttle_wait(make_queue, add_rows, statuses):
    ids = await add_rows(23)
    invoker = FakeInvoker()
    queue = make_queue(invoker, throttle_delay=60)

    await queue.enqueue(ids)
    await wait_until(lambda: queue.progress.current == 1)

    await asyncio.wait_for(queue.cancel(), timeout=5)

    assert len(invoker.calls) == 1
    current = await statuses(ids)
    assert current[:10] == ["review"] * 10
    assert current[10:] == ["pending"] * 13


async def test_cancel_with_nothing_queued_is_a_noop(make_queue):
    queue = make_queue(FakeInvoker())

    snapshot = await queue.cancel()

    assert snapshot["is_processing"] is False
    assert snapshot["progress"] == {"current": 0, "total": 0}


async def test_queue_accepts_new_work_after_cancel(make_queue, add_rows, statuses):
    ids = await add_rows(5)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await queue.cancel()

    await queue.enqueue(ids)
    await queue.join()

    assert await statuses(ids) == ["review"] * 5


@pytest.mark.parametrize(
    "error, code",
    [
        (ProviderError("upstream 500"), "PROVIDER_ERROR"),
        (RateLimitError("quota exhausted"), "RATE_LIMIT"),
        (RuntimeError("unexpected"), "unexpected"),
    ],
)
async def test_failed_batch_marks_rows_error_and_queue_continues(
    make_queue, add_rows, row_store, project, error, code
):
    ids = await add_rows(23)
    invoker = FakeInvoker(errors={1: error})
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await queue.join()

    rows = {r.id: r for r in await row_store.list_rows(project.id)}
    assert len(invoker.calls) == 3
    assert all(rows[i].status == "error" for i in ids[:10])
    assert code in rows[ids[0]].error_message
    assert all(rows[i].status == "review" for i in ids[10:])
    assert queue.progress.total == 0


async def test_reviewer_edit_during_translation_is_kept(
    make_queue, add_rows, row_store, project
):
    ids = await add_rows(5)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await row_store.edit_row(project.id, ids[0], {"target_text": {"my": "Manual"}})

    invoker.release.set()
    await queue.join()

    rows = {r.id: r for r in await row_store.list_rows(project.id)}
    assert rows[ids[0]].target_text == {"my": "Manual"}
    assert rows[ids[0]].status == "review"
    assert rows[ids[1]].target_text == {"my": "my:Text 1", "zh": "zh:Text 1"}


async def test_notes_edit_on_queued_row_does_not_drop_it(
    make_queue, add_rows, row_store, project
):
    ids = await add_rows(12)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await row_store.edit_row(project.id, ids[11], {"notes": "check tone"})

    invoker.release.set()
    await queue.join()

    row = await row_store.get_row(project.id, ids[11])
    assert invoker.calls[1] == ids[10:]
    assert row.status == "review"
    assert row.target_text == {"my": "my:Text 11", "zh": "zh:Text 11"}
    assert row.notes == "check tone"


async def test_notes_edit_during_translation_keeps_result(
    make_queue, add_rows, row_store, project
):
    ids = await add_rows(3)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await row_store.edit_row(project.id, ids[0], {"notes": "brand name stays English"})

    invoker.release.set()
    await queue.join()

    row = await row_store.get_row(project.id, ids[0])
    assert row.status == "review"
    assert row.target_text == {"my": "my:Text 0", "zh": "zh:Text 0"}
    assert row.notes == "brand name stays English"


async def test_notes_edit_on_queued_row_then_cancel_reverts_it(
    make_queue, add_rows, row_store, project, statuses
):
    ids = await add_rows(12)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await row_store.edit_row(project.id, ids[11], {"notes": "check tone"})
    await queue.cancel()

    assert await statuses(ids) == ["pending"] * 12


async def test_row_taken_over_before_its_batch_is_not_sent(
    make_queue, add_rows, row_store, project
):
    ids = await add_rows(4)
    invoker = FakeInvoker(block_on_call=1)
    queue = make_queue(invoker, batch_size=2)

    await queue.enqueue(ids)
    await asyncio.wait_for(invoker.blocked.wait(), timeout=5)
    await row_store.edit_row(project.id, ids[3], {"target_text": {"zh": "人工"}})

    invoker.release.set()
    await queue.join()

    assert invoker.calls == [ids[:2], ids[2:3]]


async def test_active_glossary_is_passed_to_invoker(
    make_queue, add_rows, session_maker
):
    async with session_maker() as db:
        db.add_all([
            GlossaryTerm(source_term="Unlimited Data", translations={"my": "Data Tanpa Had"}),
            GlossaryTerm(source_term="Old Plan", translations={"my": "Pelan Lama"}, is_active=False),
            GlossaryTerm(source_term="Yes", do_not_translate=True, version="v2.0"),
        ])
        await db.commit()

    ids = await add_rows(1)
    invoker = FakeInvoker()
    queue = make_queue(invoker)

    await queue.enqueue(ids)
    await queue.join()

    assert invoker.glossaries == [
        [GlossaryEntry(source_term="Unlimited Data", translations={"my": "Data Tanpa Had"})]
    ]


async def test_registry_discard_forgets_queue(row_store, glossary_source, project):
    registry = QueueRegistry(
        row_store=row_store,
        glossary_source=glossary_source,
        invoker_factory=lambda p: FakeInvoker(),
    )
    queue = registry.get(project)

    assert registry.discard(project.id) is queue
    assert registry.peek(project.id) is None
    assert registry.discard(project.id) is None
    assert registry.get(project) is not queue
