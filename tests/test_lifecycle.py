# tests/test_lifecycle.py

from __future__ import annotations

import json

import pytest

from smartstudy.core.errors import PreconditionError, TaskNotFoundError
from smartstudy.planner.lifecycle import (
    COMPLETION_XP,
    add_tasks,
    apply_reschedule,
    complete_task,
    schedule_reviews,
)
from smartstudy.tasks.task_models import Priority, TaskStatus, TaskType, UserStats

from .fakes import FakeLLMClient, make_task

TODAY = "2024-03-10"


def test_complete_awards_xp_and_touches_only_one_task(make_state) -> None:
    state = make_state([make_task("a", due_date=TODAY), make_task("b", due_date=TODAY)])
    xp_before = state.stats.stats.xp

    result = complete_task(state, "a", today=TODAY)

    assert result.xp_awarded == COMPLETION_XP
    assert state.stats.stats.xp == xp_before + 50
    assert state.task_store.get("a").status == TaskStatus.COMPLETED
    assert state.task_store.get("b").status == TaskStatus.TODO
    assert len(state.task_store) == 2


def test_study_session_completion_schedules_two_reviews(make_state) -> None:
    session = make_task("s", title="Cell Biology", subject="Bio 101", due_date=TODAY, task_type=TaskType.STUDY_SESSION)
    state = make_state([session])

    result = complete_task(state, "s", today=TODAY)

    assert len(result.reviews) == 2
    assert [r.due_date for r in result.reviews] == ["2024-03-11", "2024-03-17"]
    for r in result.reviews:
        assert r.title == "Review: Cell Biology"
        assert r.subject == "Bio 101"
        assert r.duration_minutes == 20
        assert r.priority == Priority.MEDIUM
        assert r.status == TaskStatus.TODO
        assert r.type == TaskType.REVIEW
        assert r.is_spaced_repetition is True
    assert len({r.id for r in result.reviews} | {"s"}) == 3
    assert [t.id for t in state.task_store.all()][1:] == [r.id for r in result.reviews]


@pytest.mark.parametrize("task_type", [TaskType.ASSIGNMENT, TaskType.EXAM, TaskType.REVIEW])
def test_other_types_do_not_schedule_reviews(make_state, task_type) -> None:
    state = make_state([make_task("x", due_date=TODAY, task_type=task_type)])
    result = complete_task(state, "x", today=TODAY)
    assert result.reviews == []
    assert len(state.task_store) == 1


def test_reviews_cross_month_boundary() -> None:
    reviews = schedule_reviews(make_task("s", task_type=TaskType.STUDY_SESSION), "2024-02-28")
    assert [r.due_date for r in reviews] == ["2024-02-29", "2024-03-06"]


def test_unknown_task_id_raises_and_changes_nothing(make_state, kv) -> None:
    state = make_state([make_task("a")])
    writes = kv.writes
    with pytest.raises(TaskNotFoundError):
        complete_task(state, "nope", today=TODAY)
    assert kv.writes == writes
    assert state.task_store.get("a").status == TaskStatus.TODO


def test_streak_badge_is_reported_with_completion(make_state, kv) -> None:
    kv.set("ssp_stats", json.dumps(UserStats(streak=6, xp=0, level=0, last_completion_date="2024-03-09").to_dict()))
    state = make_state([make_task("a", due_date=TODAY)])

    result = complete_task(state, "a", today=TODAY)

    assert state.stats.stats.streak == 7
    assert "On Fire" in result.badges_earned


def test_double_completion_is_a_noop(make_state) -> None:
    state = make_state([make_task("s", due_date=TODAY, task_type=TaskType.STUDY_SESSION)])
    complete_task(state, "s", today=TODAY)
    xp = state.stats.stats.xp
    count = len(state.task_store)

    again = complete_task(state, "s", today=TODAY)

    assert again.already_completed is True
    assert again.xp_awarded == 0
    assert state.stats.stats.xp == xp
    assert len(state.task_store) == count


def test_completion_persists_tasks_and_stats(make_state, kv) -> None:
    state = make_state([make_task("a", due_date=TODAY)])
    complete_task(state, "a", today=TODAY)
    tasks = json.loads(kv.get("ssp_tasks") or "")
    stats = json.loads(kv.get("ssp_stats") or "")
    assert tasks[0]["status"] == "COMPLETED"
    assert stats["xp"] == state.stats.stats.xp
    assert stats["lastCompletionDate"] == TODAY


def test_add_tasks_appends_in_order(make_state) -> None:
    state = make_state([make_task("a")])
    add_tasks(state, [make_task("b"), make_task("c")])
    assert [t.id for t in state.task_store.all()] == ["a", "b", "c"]


def test_apply_reschedule_offline_touches_nothing(make_state, llm, kv) -> None:
    state = make_state([make_task("old", due_date="2024-03-01")], online=False)
    writes = kv.writes
    with pytest.raises(PreconditionError):
        apply_reschedule(state, today=TODAY)
    assert llm.calls == []
    assert kv.writes == writes


def test_apply_reschedule_requeues_overdue_tasks(make_state, llm: FakeLLMClient) -> None:
    state = make_state(
        [
            make_task("old1", due_date="2024-03-01"),
            make_task("keep", due_date="2024-03-12"),
            make_task("old2", due_date="2024-03-05"),
            make_task("done", due_date="2024-03-02", status=TaskStatus.COMPLETED),
        ]
    )
    llm.next_text = json.dumps({"suggestions": [{"taskId": "old1", "newDate": "2024-03-13"}]})

    moved = apply_reschedule(state, today=TODAY)

    assert [t.id for t in moved] == ["old1", "old2"]
    assert [t.id for t in state.task_store.all()] == ["keep", "done", "old1", "old2"]
    assert state.task_store.get("old1").due_date == "2024-03-13"
    assert state.task_store.get("old2").due_date == "2024-03-11"
    assert state.task_store.get("done").due_date == "2024-03-02"


def test_apply_reschedule_without_overdue_makes_no_call(make_state, llm) -> None:
    state = make_state([make_task("a", due_date=TODAY)])
    assert apply_reschedule(state, today=TODAY) == []
    assert llm.calls == []


def test_apply_reschedule_without_credential_keeps_dates(make_state) -> None:
    state = make_state([make_task("old", due_date="2024-01-01")], with_llm=False)
    moved = apply_reschedule(state, today=TODAY)
    assert [t.due_date for t in moved] == ["2024-01-01"]
    assert state.task_store.get("old").due_date == "2024-01-01"
