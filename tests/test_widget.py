# tests/test_widget.py

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from tsumiage.sync.widget import (
    complete_task,
    fetch_widget_entry,
    parse_widget_category,
    run_widget_refresher,
)
from tsumiage.tasks.task_models import Category

from .conftest import NOW
from .fakes import FakeRenderer, FakeSignal, FakeTaskStore, make_task


def test_entry_lists_todays_open_tasks_capped() -> None:
    tasks = [make_task(f"t{h}", datetime(2025, 1, 8, h, 0)) for h in range(23, 10, -1)]
    tasks.append(make_task("done", datetime(2025, 1, 8, 9, 0), completed=True))
    tasks.append(make_task("tomorrow", datetime(2025, 1, 9, 9, 0)))
    store = FakeTaskStore(tasks)

    entry = fetch_widget_entry(store, NOW, limit=10)

    assert entry.remaining_count == 13
    assert len(entry.tasks) == 10
    assert [t.title for t in entry.tasks[:2]] == ["t11", "t12"]


def test_entry_category_filter() -> None:
    store = FakeTaskStore(
        [
            make_task("w", datetime(2025, 1, 8, 9, 0), category=Category.WORK),
            make_task("s", datetime(2025, 1, 8, 9, 0), category=Category.SHOPPING),
        ]
    )

    entry = fetch_widget_entry(store, NOW, category=Category.SHOPPING)

    assert [t.title for t in entry.tasks] == ["s"]
    assert entry.remaining_count == 1


def test_entry_is_empty_when_store_fails() -> None:
    store = FakeTaskStore([make_task("w", datetime(2025, 1, 8, 9, 0))])
    store.fail_reads = True

    entry = fetch_widget_entry(store, NOW)

    assert entry.remaining_count == 0
    assert entry.tasks == []


def test_parse_widget_category() -> None:
    assert parse_widget_category("all") is None
    assert parse_widget_category("") is None
    assert parse_widget_category("Work") is Category.WORK
    with pytest.raises(ValueError):
        parse_widget_category("garden")


def test_complete_task_sets_flag_and_signals() -> None:
    task = make_task("w", datetime(2025, 1, 8, 9, 0))
    store = FakeTaskStore([task])
    signal = FakeSignal()

    assert complete_task(store, task.id, signal=signal) is True
    assert store.get(task.id).is_completed is True
    assert signal.notified == 1

    # Completing again is harmless.
    assert complete_task(store, task.id, signal=signal) is True


def test_complete_task_missing_or_blank_id() -> None:
    signal = FakeSignal()
    assert complete_task(FakeTaskStore(), "gone", signal=signal) is False
    assert complete_task(FakeTaskStore(), "  ", signal=signal) is False
    assert signal.notified == 0


def test_complete_task_against_sqlite(store) -> None:
    task = make_task("w", datetime(2025, 1, 8, 9, 0))
    store.insert(task)

    assert complete_task(store, task.id) is True
    assert store.get(task.id).is_completed is True


@pytest.mark.asyncio
async def test_refresher_rerenders_on_signal() -> None:
    task = make_task("w", datetime(2025, 1, 8, 9, 0))
    store = FakeTaskStore([task])
    signal = FakeSignal()
    renderer = FakeRenderer()

    runner = asyncio.create_task(
        run_widget_refresher(
            store,
            signal,
            renderer,
            refresh_interval_seconds=3600,
            poll_seconds=0.01,
            clock=lambda: NOW,
        )
    )

    await asyncio.sleep(0.05)
    assert len(renderer.entries) == 1
    assert renderer.entries[0].remaining_count == 1

    complete_task(store, task.id, signal=signal)
    await asyncio.sleep(0.05)

    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(renderer.entries) == 2
    assert renderer.entries[-1].remaining_count == 0
