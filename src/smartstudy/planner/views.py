# src/smartstudy/planner/views.py

"""
Derived views over the task list.

All functions are pure: (tasks, today) in, fresh lists/counters out.
Dates are ISO strings, so plain string comparison orders them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..tasks.task_models import Task, TaskStatus

SUBJECT_COLORS: tuple[str, ...] = (
    "#3b82f6",  # blue
    "#10b981",  # emerald
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#8b5cf6",  # violet
    "#ec4899",  # pink
)


@dataclass(slots=True, frozen=True)
class SubjectProgress:
    subject: str
    completed: int
    total: int
    color: str

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        # round-half-up like the dashboard (Math.round), not banker's rounding
        return int(self.completed * 100 / self.total + 0.5)


def todays_agenda(tasks: Iterable[Task], today: str) -> list[Task]:
    return [t for t in tasks if t.due_date == today and t.status != TaskStatus.COMPLETED]


def overdue(tasks: Iterable[Task], today: str) -> list[Task]:
    return [t for t in tasks if t.due_date < today and t.status != TaskStatus.COMPLETED]


def completed_today(tasks: Iterable[Task], today: str) -> int:
    return sum(1 for t in tasks if t.due_date == today and t.status == TaskStatus.COMPLETED)


def subject_progress(tasks: Iterable[Task]) -> list[SubjectProgress]:
    """Per-subject completion, in first-seen subject order; color rotates over the palette."""
    counts: dict[str, list[int]] = {}
    for t in tasks:
        entry = counts.setdefault(t.subject, [0, 0])
        entry[1] += 1
        if t.status == TaskStatus.COMPLETED:
            entry[0] += 1

    return [
        SubjectProgress(
            subject=subject,
            completed=done,
            total=total,
            color=SUBJECT_COLORS[i % len(SUBJECT_COLORS)],
        )
        for i, (subject, (done, total)) in enumerate(counts.items())
    ]


def full_schedule(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.due_date)


def upcoming(tasks: Iterable[Task], today: str, *, limit: int = 10) -> list[Task]:
    """Soonest non-overdue, not-yet-completed tasks."""
    pending = [t for t in tasks if t.due_date >= today and t.status != TaskStatus.COMPLETED]
    return full_schedule(pending)[: max(0, limit)]
