# tests/test_task_api.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from tsumiage.core.dates import Weekday
from tsumiage.core.errors import NotFoundError, PartialWriteError
from tsumiage.tasks.recurrence import RecurrenceRequest
from tsumiage.tasks.task_api import (
    DeletionScope,
    create_task,
    delete_task,
    deletion_scopes,
    edit_task,
    resolve_task_id,
    set_completed,
    submit_task,
    toggle_completion,
)
from tsumiage.tasks.task_models import Category, Priority

from .fakes import FakeTaskStore, make_task


def _request(**kw) -> RecurrenceRequest:
    base = dict(
        title="Standup",
        anchor=datetime(2025, 1, 6, 9, 30),
        priority=Priority.HIGH,
        category=Category.WORK,
    )
    base.update(kw)
    return RecurrenceRequest(**base)


def test_submit_standalone(store) -> None:
    exp = submit_task(store, _request(title="  Standup  "))

    assert exp.group_id is None
    saved = store.get(exp.tasks[0].id)
    assert saved.title == "Standup"
    assert saved.recurrence_group_id is None


def test_submit_rejects_blank_title(store) -> None:
    with pytest.raises(ValueError):
        submit_task(store, _request(title="   "))
    assert store.query_all() == []


def test_submit_series_persists_group(store) -> None:
    exp = submit_task(
        store,
        _request(weekdays=frozenset({Weekday.MON, Weekday.FRI}), end_date=date(2025, 1, 17)),
    )

    assert len(exp.tasks) == 4
    stored = store.query_all()
    assert {t.recurrence_group_id for t in stored} == {exp.group_id}


def test_submit_clamps_far_end_date() -> None:
    store = FakeTaskStore()
    exp = submit_task(
        store,
        _request(weekdays=frozenset({Weekday.MON}), end_date=date(2030, 1, 1)),
        max_recurrence_days=14,
    )

    # Jan 6, 13, 20 fall inside anchor + 14 days.
    assert [t.scheduled_at.date() for t in exp.tasks] == [
        date(2025, 1, 6),
        date(2025, 1, 13),
        date(2025, 1, 20),
    ]


def test_submit_empty_expansion_falls_back_to_single_task() -> None:
    store = FakeTaskStore()
    exp = submit_task(
        store,
        _request(weekdays=frozenset({Weekday.TUE}), end_date=date(2025, 1, 6)),
    )

    assert exp.group_id is None
    assert len(store.tasks) == 1
    assert exp.tasks[0].scheduled_at == datetime(2025, 1, 6, 9, 30)


def test_submit_series_failure_leaves_nothing() -> None:
    store = FakeTaskStore(fail_insert_after=2)
    with pytest.raises(PartialWriteError):
        submit_task(
            store,
            _request(weekdays=frozenset(Weekday), end_date=date(2025, 1, 12)),
        )
    assert store.tasks == {}


def test_forward_delete_keeps_earlier_occurrences(store) -> None:
    exp = submit_task(
        store,
        _request(weekdays=frozenset(Weekday), end_date=date(2025, 1, 12)),
    )
    by_day = sorted(exp.tasks, key=lambda t: t.scheduled_at)
    target = by_day[1]

    assert deletion_scopes(target) == (DeletionScope.SINGLE, DeletionScope.FORWARD)
    removed = delete_task(store, target.id, DeletionScope.FORWARD)

    assert removed == 6
    assert [t.id for t in store.query_all()] == [by_day[0].id]


def test_single_delete_of_group_member(store) -> None:
    exp = submit_task(
        store,
        _request(weekdays=frozenset({Weekday.MON, Weekday.TUE}), end_date=date(2025, 1, 7)),
    )

    assert delete_task(store, exp.tasks[0].id) == 1
    assert [t.id for t in store.query_all()] == [exp.tasks[1].id]


def test_forward_on_standalone_deletes_one(store) -> None:
    keep = create_task(store, title="keep", scheduled_at=datetime(2025, 1, 9, 9, 0))
    gone = create_task(store, title="gone", scheduled_at=datetime(2025, 1, 8, 9, 0))

    assert deletion_scopes(gone) == (DeletionScope.SINGLE,)
    assert delete_task(store, gone.id, DeletionScope.FORWARD) == 1
    assert delete_task(store, gone.id) == 0
    assert store.get(keep.id) is not None


def test_completion_helpers() -> None:
    task = make_task("a", datetime(2025, 1, 8, 9, 0))
    store = FakeTaskStore([task])

    assert toggle_completion(store, task.id).is_completed is True
    assert toggle_completion(store, task.id).is_completed is False
    assert set_completed(store, task.id).is_completed is True
    assert set_completed(store, task.id).is_completed is True

    with pytest.raises(NotFoundError):
        set_completed(store, "missing")


def test_edit_keeps_link_and_completion() -> None:
    task = make_task("a", datetime(2025, 1, 8, 9, 0), completed=True, group="g")
    store = FakeTaskStore([task])

    new_at = task.scheduled_at + timedelta(hours=2)
    edited = edit_task(store, task.id, title="b", scheduled_at=new_at, priority=Priority.LOW)

    assert edited.title == "b"
    assert edited.scheduled_at == new_at
    assert edited.priority is Priority.LOW
    assert edited.category is Category.WORK
    assert edited.is_completed is True
    assert edited.recurrence_group_id == "g"


def test_resolve_task_id_by_prefix() -> None:
    a = make_task("a", datetime(2025, 1, 8, 9, 0))
    b = make_task("b", datetime(2025, 1, 8, 9, 0))
    a.id = "abc111"
    b.id = "abd222"
    store = FakeTaskStore([a, b])

    assert resolve_task_id(store, "abc") == "abc111"
    assert resolve_task_id(store, "ABD2") == "abd222"
    with pytest.raises(ValueError):
        resolve_task_id(store, "ab")
    with pytest.raises(NotFoundError):
        resolve_task_id(store, "zz")
