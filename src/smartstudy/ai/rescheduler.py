# src/smartstudy/ai/rescheduler.py

"""
Overdue task rescheduling.

Unlike syllabus import this path never fails loudly:
- no LLM configured         -> tasks come back unchanged
- LLM/transport/parse error -> every task moves to tomorrow
- suggestion missing/bad    -> that task alone moves to tomorrow

Output always has the same ids, in the same order, as the `missed` input.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from ..core.errors import PreconditionError, RescheduleError
from ..core.ports import JsonSchema, LLMClient
from ..planner.views import upcoming
from ..tasks.task_models import Task, add_days, is_iso_date, today_iso
from .json_utils import extract_json

logger = logging.getLogger(__name__)

UPCOMING_CONTEXT_LIMIT = 10
MAX_HIGH_PRIORITY_PER_DAY = 3

RESCHEDULE_PROMPT = """
Today is {today}.
I have missed the following tasks: {missed}.
My current schedule for the next few days has these tasks: {upcoming}.

Suggest new dates for the missed tasks. Prioritize finding gaps.
Do not schedule more than {max_high} high priority tasks in one day. Never pick a date before today.
Return JSON: {{"suggestions": [{{"taskId": "<original id>", "newDate": "YYYY-MM-DD"}}]}}.
""".strip()

SUGGESTIONS_SCHEMA: JsonSchema = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "taskId": {"type": "string"},
                    "newDate": {"type": "string"},
                },
                "required": ["taskId", "newDate"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}


def build_reschedule_prompt(missed: Sequence[Task], all_tasks: Sequence[Task], today: str) -> str:
    missed_payload = [{"taskId": t.id, "title": t.title, "priority": t.priority.value} for t in missed]
    missed_ids = {t.id for t in missed}
    context = [
        {"title": t.title, "date": t.due_date}
        for t in upcoming([t for t in all_tasks if t.id not in missed_ids], today, limit=UPCOMING_CONTEXT_LIMIT)
    ]
    return RESCHEDULE_PROMPT.format(
        today=today,
        missed=json.dumps(missed_payload, ensure_ascii=False),
        upcoming=json.dumps(context, ensure_ascii=False),
        max_high=MAX_HIGH_PRIORITY_PER_DAY,
    )


def parse_suggestions(text: str) -> dict[str, str]:
    """Map taskId -> newDate. Raises RescheduleError when the payload is unusable."""
    try:
        data: Any = extract_json(text or "[]")
    except ValueError as e:
        raise RescheduleError("reschedule response is not JSON") from e

    if isinstance(data, dict):
        data = data.get("suggestions")
    if not isinstance(data, list):
        raise RescheduleError("reschedule response has no suggestion array")

    out: dict[str, str] = {}
    for item in data:
        if not isinstance(item, dict):
            continue
        task_id = item.get("taskId")
        new_date = item.get("newDate")
        if isinstance(task_id, str) and isinstance(new_date, str) and task_id not in out:
            out[task_id] = new_date.strip()
    return out


def _move_all(missed: Sequence[Task], day: str) -> list[Task]:
    return [replace(t, due_date=day) for t in missed]


def reschedule_tasks(
        llm: LLMClient | None,
        missed: Sequence[Task],
        all_tasks: Sequence[Task],
        *,
        online: bool = True,
        today: str | None = None,
) -> list[Task]:
    if not online:
        raise PreconditionError("Smart rescheduling requires an internet connection.")
    if not missed:
        return []
    if llm is None:
        logger.info("No LLM configured; leaving %d overdue tasks unchanged.", len(missed))
        return list(missed)

    day = today or today_iso()
    tomorrow = add_days(day, 1)

    try:
        try:
            raw = llm.complete_json(
                build_reschedule_prompt(missed, all_tasks, day),
                schema=SUGGESTIONS_SCHEMA,
                schema_name="reschedule_suggestions",
            )
        except Exception as e:
            raise RescheduleError("reschedule request failed") from e
        suggestions = parse_suggestions(raw)
    except RescheduleError:
        logger.exception("Reschedule failed; moving %d tasks to %s.", len(missed), tomorrow)
        return _move_all(missed, tomorrow)

    out: list[Task] = []
    for t in missed:
        new_date = suggestions.get(t.id)
        if new_date is not None and is_iso_date(new_date) and new_date >= day:
            out.append(replace(t, due_date=new_date))
        else:
            if new_date is not None:
                logger.warning("Ignoring suggestion %r for task %s", new_date, t.id)
            out.append(replace(t, due_date=tomorrow))
    return out
