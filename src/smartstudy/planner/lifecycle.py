# src/smartstudy/planner/lifecycle.py

"""
Task lifecycle.

The only functions that mutate the task list / stats in response to user
actions. Each one runs under state.lock, mutates memory first, then relies on
the stores to write full snapshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from ..ai.rescheduler import reschedule_tasks
from ..core.errors import PreconditionError, TaskNotFoundError
from ..core.state import AppState
from ..tasks.task_models import (
    Priority,
    Task,
    TaskStatus,
    TaskType,
    add_days,
    new_task_id,
    today_iso,
)
from .views import overdue

logger = logging.getLogger(__name__)

COMPLETION_XP = 50
REVIEW_OFFSETS_DAYS: tuple[int, ...] = (1, 7)
REVIEW_DURATION_MINUTES = 20


@dataclass(slots=True)
class CompletionResult:
    task: Task
    xp_awarded: int
    reviews: list[Task] = field(default_factory=list)
    badges_earned: list[str] = field(default_factory=list)
    already_completed: bool = False


def schedule_reviews(task: Task, completed_on: str) -> list[Task]:
    """Spaced-repetition follow-ups for a finished study session."""
    return [
        Task(
            id=new_task_id(),
            title=f"Review: {task.title}",
            subject=task.subject,
            due_date=add_days(completed_on, days),
            duration_minutes=REVIEW_DURATION_MINUTES,
            status=TaskStatus.TODO,
            type=TaskType.REVIEW,
            priority=Priority.MEDIUM,
            is_spaced_repetition=True,
        )
        for days in REVIEW_OFFSETS_DAYS
    ]


def complete_task(state: AppState, task_id: str, *, today: str | None = None) -> CompletionResult:
    """
    Mark one task COMPLETED.

    - unknown id -> TaskNotFoundError
    - already completed -> no-op (no xp, no duplicate reviews)
    - STUDY_SESSION -> two REVIEW tasks at +1/+7 days from `today`
    """
    day = today or today_iso()

    with state.lock:
        task = state.task_store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        if task.status == TaskStatus.COMPLETED:
            logger.info("Task %s already completed; ignoring.", task_id)
            return CompletionResult(task=task, xp_awarded=0, already_completed=True)

        done = replace(task, status=TaskStatus.COMPLETED)
        state.task_store.replace(done)

        earned = state.stats.award_xp(COMPLETION_XP)
        earned += state.stats.record_completion(day)

        reviews: list[Task] = []
        if done.type == TaskType.STUDY_SESSION:
            reviews = schedule_reviews(done, day)
            state.task_store.append(reviews)

    logger.info("Task %s completed (+%d xp, %d reviews)", task_id, COMPLETION_XP, len(reviews))
    return CompletionResult(task=done, xp_awarded=COMPLETION_XP, reviews=reviews, badges_earned=earned)


def add_tasks(state: AppState, tasks: list[Task]) -> int:
    with state.lock:
        state.task_store.append(tasks)
    logger.info("Added %d tasks", len(tasks))
    return len(tasks)


def apply_reschedule(state: AppState, *, today: str | None = None) -> list[Task]:
    """
    Move every overdue task to a new date (LLM suggestion or fallback).

    Rescheduled tasks are taken out of their current position and re-appended.
    Offline -> PreconditionError, nothing touched.
    """
    day = today or today_iso()

    if not state.connectivity.is_online:
        raise PreconditionError("Smart rescheduling requires an internet connection.")

    with state.lock:
        all_tasks = state.task_store.all()
        missed = overdue(all_tasks, day)

    if not missed:
        return []

    rescheduled = reschedule_tasks(
        state.llm,
        missed,
        all_tasks,
        online=state.connectivity.is_online,
        today=day,
    )

    with state.lock:
        # Tasks completed while the request was in flight keep their current state.
        still_open = {t.id for t in overdue(state.task_store.all(), day)}
        rescheduled = [t for t in rescheduled if t.id in still_open]
        if rescheduled:
            state.task_store.requeue(rescheduled)

    logger.info("Rescheduled %d overdue tasks", len(rescheduled))
    return rescheduled
