# src/smartstudy/ai/generator.py

"""
Syllabus import: image and/or text -> new TODO tasks.

Preconditions (checked before any network call):
- some input (image bytes or non-blank text)      -> else PreconditionError
- online                                         -> else PreconditionError
- an LLM client (i.e. a configured API key)      -> else MissingCredentialError

The model's output is treated as untrusted: every element goes through
parse_generated_task(). Malformed elements are dropped one by one; the batch
only fails when the response as a whole is unusable.
"""

from __future__ import annotations

import logging
from typing import Any

from ..core.errors import (
    GenerationError,
    MissingCredentialError,
    PreconditionError,
    TaskValidationError,
)
from ..core.ports import JsonSchema, LLMClient
from ..tasks.task_models import Priority, Task, TaskStatus, TaskType, is_iso_date, new_task_id, today_iso
from .json_utils import extract_json

logger = logging.getLogger(__name__)

GENERATABLE_TYPES: tuple[TaskType, ...] = (TaskType.ASSIGNMENT, TaskType.EXAM, TaskType.STUDY_SESSION)

DEFAULT_PRIORITY: dict[TaskType, Priority] = {
    TaskType.EXAM: Priority.HIGH,
    TaskType.ASSIGNMENT: Priority.MEDIUM,
    TaskType.STUDY_SESSION: Priority.LOW,
}

SYLLABUS_PROMPT = """
You are an intelligent study planner assistant.
Analyze the provided syllabus (image or text) and extract a list of actionable study tasks, exams, and assignments.

Current Date: {today}

Rules:
1. Identify specific deliverables (Assignments, Exams) and their due dates.
2. Create "Study Session" tasks for major topics found in the syllabus. Schedule them a few days before
   the relevant exam or assignment if possible, otherwise spread them out starting from tomorrow.
3. If specific dates aren't mentioned (e.g., "Week 5"), estimate the date based on the Current Date
   assuming the semester started recently or is ongoing.
4. Return JSON: {{"tasks": [...]}}.

Each task has:
- title: string
- subject: string (course name)
- dueDate: string (YYYY-MM-DD)
- type: one of "ASSIGNMENT", "EXAM", "STUDY_SESSION"
- priority: "high" for exams, "medium" for assignments, "low" for study sessions
- durationMinutes: number (estimate 60 for study, 120 for exams/assignments prep)
""".strip()

TASKS_SCHEMA: JsonSchema = {
    "type": "object",
    "properties": {
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "subject": {"type": "string"},
                    "dueDate": {"type": "string"},
                    "type": {"type": "string", "enum": [t.value for t in GENERATABLE_TYPES]},
                    "priority": {"type": "string", "enum": [p.value for p in Priority]},
                    "durationMinutes": {"type": ["integer", "null"]},
                },
                "required": ["title", "subject", "dueDate", "type", "priority", "durationMinutes"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["tasks"],
    "additionalProperties": False,
}


def _required_text(raw: dict[str, Any], key: str) -> str:
    v = raw.get(key)
    if not isinstance(v, str) or not v.strip():
        raise TaskValidationError(f"missing or blank {key!r}")
    return v.strip()


def coerce_task_type(value: Any) -> TaskType:
    """Closed mapping from model text to a generatable type; anything else is a study session."""
    if isinstance(value, str):
        key = value.strip().upper().replace(" ", "_").replace("-", "_")
        for t in GENERATABLE_TYPES:
            if t.value == key:
                return t
    return TaskType.STUDY_SESSION


def coerce_priority(value: Any, task_type: TaskType) -> Priority:
    if isinstance(value, str):
        try:
            return Priority(value.strip().lower())
        except ValueError:
            pass
    return DEFAULT_PRIORITY.get(task_type, Priority.MEDIUM)


def coerce_duration(value: Any, task_type: TaskType) -> int:
    if not isinstance(value, bool) and isinstance(value, (int, float)) and value >= 1:
        return int(round(value))
    return 60 if task_type == TaskType.STUDY_SESSION else 120


def parse_generated_task(raw: Any) -> Task:
    """Validate one model-produced element. Raises TaskValidationError."""
    if not isinstance(raw, dict):
        raise TaskValidationError(f"element is not an object: {type(raw).__name__}")

    title = _required_text(raw, "title")
    subject = _required_text(raw, "subject")
    due_date = _required_text(raw, "dueDate")
    if not is_iso_date(due_date):
        raise TaskValidationError(f"dueDate is not YYYY-MM-DD: {due_date!r}")

    task_type = coerce_task_type(raw.get("type"))
    return Task(
        id=new_task_id(),
        title=title,
        subject=subject,
        due_date=due_date,
        duration_minutes=coerce_duration(raw.get("durationMinutes"), task_type),
        status=TaskStatus.TODO,
        type=task_type,
        priority=coerce_priority(raw.get("priority"), task_type),
    )


def parse_generation_response(text: str) -> list[Task]:
    if not text or not text.strip():
        return []

    try:
        data = extract_json(text)
    except ValueError as e:
        raise GenerationError("AI response is not valid JSON.") from e

    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        raise GenerationError("AI response has no task array.")
    if not data:
        return []

    tasks: list[Task] = []
    for i, item in enumerate(data):
        try:
            tasks.append(parse_generated_task(item))
        except TaskValidationError as e:
            logger.warning("Dropping generated task #%d: %s", i, e)

    if not tasks:
        raise GenerationError("AI response contained no usable tasks.")
    return tasks


def generate_tasks(
        llm: LLMClient | None,
        *,
        image: bytes | None = None,
        image_mime: str = "image/png",
        text: str | None = None,
        online: bool = True,
        today: str | None = None,
) -> list[Task]:
    """Ask the LLM for tasks. Does not touch the TaskStore; the caller appends the result."""
    text = (text or "").strip()
    if not image and not text:
        raise PreconditionError("Please upload an image or paste syllabus text.")
    if not online:
        raise PreconditionError("You are currently offline. Please connect to the internet to use AI features.")
    if llm is None:
        raise MissingCredentialError()

    prompt = SYLLABUS_PROMPT.format(today=today or today_iso())
    extra = [f"Additional User Notes/Syllabus Text: {text}"] if text else None

    try:
        raw = llm.complete_json(
            prompt,
            schema=TASKS_SCHEMA,
            schema_name="syllabus_tasks",
            extra_text=extra,
            image=image,
            image_mime=image_mime,
        )
    except Exception as e:
        logger.exception("Syllabus generation request failed.")
        raise GenerationError("AI request failed.") from e

    tasks = parse_generation_response(raw)
    logger.info("Generated %d tasks from syllabus", len(tasks))
    return tasks
