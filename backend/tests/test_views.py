from datetime import date, datetime, timedelta

import pytest

from helpers import NOW, make_batch, phone_numbers
from leadengine.models.phone_batch import PhoneTask
from leadengine.services.views import (
    batch_summaries,
    build_calendar,
    compute_lead_outcome_stats,
    compute_task_stats,
    employee_calendar,
    lead_outcome_stats,
    task_stats,
    tasks_for_batch,
    tasks_for_employee,
    upcoming_tasks,
)

pytestmark = pytest.mark.anyio

YESTERDAY = NOW - timedelta(days=1)
TOMORROW = NOW + timedelta(days=1)


def _task(index, call_status="pending", due_date=None, completed_at=None):
    return PhoneTask(
        id=f"t{index}",
        batch_id="b1",
        seq=index,
        phone_number=f"0100000000{index}",
        call_status=call_status,
        task_type="call",
        priority="medium",
        due_date=due_date,
        completed_at=completed_at,
        created_at=NOW,
    )


async def _assigned_tasks(store, rows):
    """Persist one task per ``(employee_id, call_status, due_date)`` row."""

    batch = await make_batch(store, phone_numbers(len(rows)))
    tasks = await tasks_for_batch(store, batch.id)
    for task, (employee_id, call_status, due_date) in zip(tasks, rows):
        await store.update_task(
            task.id, {"assigned_to": employee_id, "call_status": call_status, "due_date": due_date}
        )
    return tasks


def test_calendar_groups_by_local_due_date():
    day = datetime(2025, 3, 11)
    tasks = [
        _task(0, "pending", day.replace(hour=22)),
        _task(1, "called", day.replace(hour=9)),
        _task(2, "converted", datetime(2025, 3, 10, 8)),
        _task(3, "cancelled", day.replace(hour=12)),
        _task(4, "pending", None),
    ]

    calendar = build_calendar(tasks)

    assert [d.date for d in calendar] == ["2025-03-10", "2025-03-11"]
    first, second = calendar
    assert first.counts.model_dump() == {"pending": 0, "in_progress": 0, "completed": 1}
    assert second.counts.model_dump() == {"pending": 1, "in_progress": 1, "completed": 0}
    assert [t.id for t in second.tasks] == ["t0", "t1", "t3"]


def test_task_stats_counts_buckets_overdue_and_completed_today():
    tasks = [
        _task(0, "pending", YESTERDAY),
        _task(1, "pending", NOW.replace(hour=8)),
        _task(2, "callback", TOMORROW),
        _task(3, "converted", YESTERDAY, completed_at=NOW.replace(hour=9)),
        _task(4, "completed", YESTERDAY, completed_at=YESTERDAY),
        _task(5, "cancelled", YESTERDAY),
        _task(6, "interested", None),
    ]

    stats = compute_task_stats(tasks, NOW)

    assert stats.model_dump() == {
        "total": 7,
        "pending": 2,
        "in_progress": 2,
        "completed": 2,
        "overdue": 2,
        "completed_today": 1,
    }


def test_lead_outcome_stats_count_raw_statuses():
    tasks = [
        _task(0, "pending"),
        _task(1, "called"),
        _task(2, "called"),
        _task(3, "interested"),
        _task(4, "converted"),
        _task(5, "not_interested"),
    ]

    assert compute_lead_outcome_stats(tasks).model_dump() == {
        "total": 6,
        "pending": 1,
        "called": 2,
        "interested": 1,
        "converted": 1,
    }


async def test_employee_calendar_end_date_is_inclusive(store):
    await _assigned_tasks(
        store,
        [
            ("emp-sara", "pending", datetime(2025, 3, 12, 23, 30)),
            ("emp-sara", "called", datetime(2025, 3, 11, 9)),
            ("emp-sara", "pending", datetime(2025, 3, 13, 0, 0)),
            ("emp-sara", "pending", datetime(2025, 3, 10, 23, 59)),
            ("emp-ahmed", "pending", datetime(2025, 3, 12, 10)),
        ],
    )

    calendar = await employee_calendar(store, "emp-sara", date(2025, 3, 11), date(2025, 3, 12))

    assert [d.date for d in calendar] == ["2025-03-11", "2025-03-12"]
    assert [d.counts.in_progress for d in calendar] == [1, 0]
    assert [d.counts.pending for d in calendar] == [0, 1]


async def test_upcoming_tasks_are_open_soonest_first_undated_last(store):
    tasks = await _assigned_tasks(
        store,
        [
            ("emp-sara", "pending", datetime(2025, 3, 15)),
            ("emp-sara", "callback", datetime(2025, 3, 11)),
            ("emp-sara", "pending", None),
            ("emp-sara", "converted", datetime(2025, 3, 10)),
            ("emp-ahmed", "pending", datetime(2025, 3, 9)),
        ],
    )

    upcoming = await upcoming_tasks(store, "emp-sara")

    assert [t.id for t in upcoming] == [tasks[1].id, tasks[0].id, tasks[2].id]
    assert [t.id for t in await upcoming_tasks(store, "emp-sara", limit=1)] == [tasks[1].id]


async def test_stats_can_be_scoped_to_one_employee(store):
    await _assigned_tasks(
        store,
        [
            ("emp-sara", "called", TOMORROW),
            ("emp-sara", "pending", YESTERDAY),
            ("emp-ahmed", "converted", TOMORROW),
        ],
    )

    sara = await task_stats(store, "emp-sara", now=NOW)
    everyone = await task_stats(store, now=NOW)

    assert (sara.total, sara.in_progress, sara.overdue) == (2, 1, 1)
    assert (everyone.total, everyone.completed) == (3, 1)
    assert (await lead_outcome_stats(store, "emp-sara")).called == 1
    assert (await lead_outcome_stats(store)).converted == 1


async def test_tasks_for_employee(store):
    tasks = await _assigned_tasks(
        store,
        [("emp-sara", "pending", None), ("emp-ahmed", "pending", None), ("emp-sara", "pending", None)],
    )

    assert [t.id for t in await tasks_for_employee(store, "emp-sara")] == [tasks[0].id, tasks[2].id]


async def test_batch_summaries_count_unassigned_tasks(store):
    empty = await make_batch(store, [])
    batch = await make_batch(store, phone_numbers(3), assigned=[None, "emp-sara", None])

    summaries = {s.id: s for s in await batch_summaries(store)}

    assert (summaries[batch.id].task_count, summaries[batch.id].unassigned_count) == (3, 2)
    assert (summaries[empty.id].task_count, summaries[empty.id].unassigned_count) == (0, 0)
