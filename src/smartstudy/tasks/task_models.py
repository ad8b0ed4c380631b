# src/smartstudy/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - Only TODO and COMPLETED are produced by the planner today.
    - IN_PROGRESS and MISSED are reserved (never assigned automatically) but
      must survive a load/save round-trip.
    """

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    MISSED = "MISSED"


class TaskType(StrEnum):
    ASSIGNMENT = "ASSIGNMENT"
    EXAM = "EXAM"
    STUDY_SESSION = "STUDY_SESSION"
    REVIEW = "REVIEW"  # only produced by spaced repetition


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def new_task_id() -> str:
    return uuid.uuid4().hex


def today_iso() -> str:
    return date.today().isoformat()


def is_iso_date(value: Any) -> bool:
    """True for zero-padded YYYY-MM-DD strings naming a real calendar day."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def add_days(iso_day: str, days: int) -> str:
    return (date.fromisoformat(iso_day) + timedelta(days=days)).isoformat()


@dataclass(slots=True)
class Task:
    id: str
    title: str
    subject: str
    due_date: str  # YYYY-MM-DD, compared lexicographically
    duration_minutes: int
    status: TaskStatus
    type: TaskType
    priority: Priority
    is_spaced_repetition: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Persisted (camelCase) form."""
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "subject": self.subject,
            "dueDate": self.due_date,
            "durationMinutes": self.duration_minutes,
            "status": self.status.value,
            "type": self.type.value,
            "priority": self.priority.value,
        }
        if self.is_spaced_repetition is not None:
            out["isSpacedRepetition"] = self.is_spaced_repetition
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """
        Strict decoder for persisted records.

        Raises KeyError/ValueError/TypeError on anything malformed; the store
        turns those into a fallback to the seed collection.
        """
        if not isinstance(raw, dict):
            raise TypeError(f"task record must be an object, got {type(raw).__name__}")

        task_id = raw["id"]
        if not isinstance(task_id, str) or not task_id:
            raise ValueError("task id must be a non-empty string")

        due_date = raw["dueDate"]
        if not is_iso_date(due_date):
            raise ValueError(f"bad dueDate: {due_date!r}")

        duration = raw["durationMinutes"]
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise ValueError(f"bad durationMinutes: {duration!r}")

        srs = raw.get("isSpacedRepetition")
        return cls(
            id=task_id,
            title=str(raw["title"]),
            subject=str(raw["subject"]),
            due_date=due_date,
            duration_minutes=int(duration),
            status=TaskStatus(raw["status"]),
            type=TaskType(raw["type"]),
            priority=Priority(raw["priority"]),
            is_spaced_repetition=bool(srs) if srs is not None else None,
        )


@dataclass(slots=True)
class UserStats:
    streak: int = 0
    xp: int = 0
    total_focus_minutes: int = 0
    level: int = 1
    badges: list[str] = field(default_factory=list)
    last_completion_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "streak": self.streak,
            "xp": self.xp,
            "totalFocusMinutes": self.total_focus_minutes,
            "level": self.level,
            "badges": list(self.badges),
        }
        if self.last_completion_date is not None:
            out["lastCompletionDate"] = self.last_completion_date
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> UserStats:
        if not isinstance(raw, dict):
            raise TypeError(f"stats record must be an object, got {type(raw).__name__}")

        def _count(key: str) -> int:
            v = raw[key]
            if isinstance(v, bool) or not isinstance(v, (int, float)) or v < 0:
                raise ValueError(f"bad {key}: {v!r}")
            return int(v)

        badges = raw.get("badges", [])
        if not isinstance(badges, list):
            raise ValueError("badges must be a list")

        last = raw.get("lastCompletionDate")
        if last is not None and not is_iso_date(last):
            raise ValueError(f"bad lastCompletionDate: {last!r}")

        return cls(
            streak=_count("streak"),
            xp=_count("xp"),
            total_focus_minutes=_count("totalFocusMinutes"),
            level=_count("level"),
            badges=list(dict.fromkeys(str(b) for b in badges)),
            last_completion_date=last,
        )


def default_tasks(today: str | None = None) -> list[Task]:
    """Seed collection used when nothing is persisted yet."""
    day = today or today_iso()
    return [
        Task(
            id="1",
            title="Intro to Psychology Reading",
            subject="Psychology 101",
            due_date=day,
            duration_minutes=45,
            status=TaskStatus.TODO,
            type=TaskType.STUDY_SESSION,
            priority=Priority.MEDIUM,
        ),
        Task(
            id="2",
            title="Calculus Problem Set 3",
            subject="Calculus II",
            due_date=day,
            duration_minutes=90,
            status=TaskStatus.TODO,
            type=TaskType.ASSIGNMENT,
            priority=Priority.HIGH,
        ),
    ]


def default_stats() -> UserStats:
    return UserStats(streak=3, xp=450, total_focus_minutes=120, level=4, badges=["Early Bird"])
