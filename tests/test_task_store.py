# tests/test_task_store.py

from __future__ import annotations

import random
from pathlib import Path

import pytest

from task_tracker.errors import DecodeError, LockTimeout, NotFound
from task_tracker.tasks.codec import encode_id
from task_tracker.tasks.lifecycle import complete_task, finish
from task_tracker.tasks.task_models import ARCHIVE, TASKS, Task, TaskStatus
from task_tracker.tasks.task_store import TaskStore


def _ids(store: TaskStore, collection: str = TASKS) -> list[int]:
    return [t.id for t in store.scan(collection)]


def _descs(store: TaskStore, collection: str = TASKS) -> list[str]:
    return [t.task.description for t in store.scan(collection)]


def test_open_creates_both_collections(store: TaskStore) -> None:
    assert store.count(TASKS) == 0
    assert store.count(ARCHIVE) == 0
    with store.transaction(write=False) as tx:
        assert tx.bucket(TASKS) is not None
        assert tx.bucket(ARCHIVE) is not None


def test_ensure_collections_restores_dropped_collections(store: TaskStore, insert_all) -> None:
    insert_all("a", "b")
    store.drop(TASKS)
    store.drop(ARCHIVE)

    store.ensure_collections()

    with store.transaction(write=False) as tx:
        assert tx.bucket(TASKS).sequence() == 0
        assert tx.bucket(ARCHIVE).sequence() == 0
    assert store.insert(TASKS, "fresh") == 1
    assert store.insert(ARCHIVE, "fresh") == 1


def test_ensure_collections_keeps_existing_entries(store: TaskStore, insert_all) -> None:
    insert_all("a", "b")
    store.ensure_collections()
    assert _descs(store) == ["a", "b"]
    assert store.insert(TASKS, "c") == 3


def test_insert_assigns_sequential_ids(store: TaskStore, fixed_now) -> None:
    ids = [store.insert(TASKS, s, now=fixed_now) for s in ("test", "prueba", "tesuto", "hoao")]
    assert ids == [1, 2, 3, 4]
    assert store.count(TASKS) == 4

    task = store.get(TASKS, 2)
    assert task.description == "prueba"
    assert task.status == TaskStatus.INCOMPLETE
    assert task.completed_at == ""
    assert task.tag == ""
    assert task.created_at.startswith("2024-03-10T12:00:00")


def test_get_missing(store: TaskStore) -> None:
    with pytest.raises(NotFound):
        store.get(TASKS, 1)
    store.drop(TASKS)
    with pytest.raises(NotFound):
        store.get(TASKS, 1)


@pytest.mark.parametrize("task_id", [0, -1, 2**64])
def test_get_and_delete_out_of_range_ids(store: TaskStore, insert_all, task_id: int) -> None:
    insert_all("a")
    with pytest.raises(NotFound):
        store.get(TASKS, task_id)
    with pytest.raises(NotFound):
        store.delete(TASKS, task_id)
    assert _descs(store) == ["a"]


def test_put_is_an_upsert(store: TaskStore) -> None:
    store.put(TASKS, 5, Task(description="direct"))
    assert store.get(TASKS, 5).description == "direct"

    store.put(TASKS, 5, Task(description="again", tag="x"))
    assert store.get(TASKS, 5).tag == "x"
    assert store.count(TASKS) == 1


def test_put_into_missing_collection(store: TaskStore) -> None:
    store.drop(ARCHIVE)
    with pytest.raises(NotFound):
        store.put(ARCHIVE, 1, Task(description="nope"))


def test_count_and_scan_of_missing_collection(store: TaskStore) -> None:
    store.drop(TASKS)
    assert store.count(TASKS) == 0
    assert store.scan(TASKS) == []


def test_insert_recreates_dropped_collection(store: TaskStore) -> None:
    store.drop(TASKS)
    assert store.insert(TASKS, "fresh") == 1


def test_delete_renumbers(store: TaskStore, insert_all) -> None:
    insert_all("test", "prueba", "tesuto", "hoao")
    store.delete(TASKS, 1)
    store.delete(TASKS, 2)

    assert store.count(TASKS) == 2
    assert _ids(store) == [1, 2]
    assert _descs(store) == ["prueba", "hoao"]
    # sequence follows the compacted count
    assert store.insert(TASKS, "next") == 3


def test_delete_missing(store: TaskStore, insert_all) -> None:
    insert_all("a")
    with pytest.raises(NotFound):
        store.delete(TASKS, 7)
    store.drop(TASKS)
    with pytest.raises(NotFound):
        store.delete(TASKS, 1)


def test_delete_many_keeps_order(store: TaskStore, insert_all) -> None:
    insert_all("a", "b", "c", "d", "e", "f")
    remaining = store.delete_many(TASKS, {1, 3, 5})

    assert remaining == 3
    assert _ids(store) == [1, 2, 3]
    assert _descs(store) == ["b", "d", "f"]
    assert store.insert(TASKS, "g") == 4


def test_delete_two_of_four(store: TaskStore, insert_all) -> None:
    insert_all("first", "second", "third", "fourth")
    store.delete_many(TASKS, {1, 3})
    assert [(t.id, t.task.description) for t in store.scan(TASKS)] == [
        (1, "second"),
        (2, "fourth"),
    ]


def test_delete_many_missing_collection(store: TaskStore) -> None:
    store.drop(TASKS)
    with pytest.raises(NotFound):
        store.delete_many(TASKS, {1})


def test_compact_closes_gaps_and_is_idempotent(store: TaskStore) -> None:
    for i, desc in ((2, "a"), (5, "b"), (9, "c")):
        store.put(TASKS, i, Task(description=desc))

    assert store.compact(TASKS) == 3
    assert _ids(store) == [1, 2, 3]
    assert _descs(store) == ["a", "b", "c"]

    assert store.compact(TASKS) == 3
    assert _descs(store) == ["a", "b", "c"]
    assert store.insert(TASKS, "d") == 4


def test_ids_stay_dense_after_random_mutations(store: TaskStore) -> None:
    rng = random.Random(42)
    for step in range(60):
        n = store.count(TASKS)
        op = rng.choice(["insert", "insert", "delete", "delete_many", "complete", "finish"])
        if op == "insert" or n == 0:
            store.insert(TASKS, f"task {step}")
        elif op == "delete":
            store.delete(TASKS, rng.randint(1, n))
        elif op == "delete_many":
            store.delete_many(TASKS, set(rng.sample(range(1, n + 1), rng.randint(1, n))))
        elif op == "complete":
            complete_task(store, rng.randint(1, n))
        else:
            finish(store)

        for collection in (TASKS, ARCHIVE):
            assert _ids(store, collection) == list(range(1, store.count(collection) + 1))


def test_failed_transaction_rolls_back(store: TaskStore, insert_all) -> None:
    insert_all("a", "b")
    with pytest.raises(RuntimeError):
        with store.transaction() as tx:
            tx.require_bucket(TASKS).clear()
            raise RuntimeError("boom")
    assert _descs(store) == ["a", "b"]


def test_corrupt_payload_surfaces_decode_error(store: TaskStore) -> None:
    with store.transaction() as tx:
        tx.require_bucket(TASKS).put(encode_id(1), b"garbage")
    with pytest.raises(DecodeError):
        store.scan(TASKS)


def test_second_open_times_out(store: TaskStore, settings) -> None:
    with pytest.raises(LockTimeout):
        TaskStore(settings.db_path, lock_timeout=0.05)


def test_reopen_after_close_keeps_data(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "tasks.db"
    with TaskStore(db) as first:
        first.insert(TASKS, "persisted", "keep")

    with TaskStore(db) as second:
        task = second.get(TASKS, 1)
        assert task.description == "persisted"
        assert task.tag == "keep"
