# tests/test_generator.py

from __future__ import annotations

import json

import pytest

from smartstudy.ai.generator import generate_tasks, parse_generated_task
from smartstudy.core.errors import GenerationError, MissingCredentialError, PreconditionError, TaskValidationError
from smartstudy.tasks.task_models import Priority, TaskStatus, TaskType

from .fakes import FakeLLMClient

TODAY = "2024-03-10"


def _item(**overrides):
    base = {
        "title": "Midterm",
        "subject": "Chemistry",
        "dueDate": "2024-04-02",
        "type": "EXAM",
        "priority": "high",
        "durationMinutes": 120,
    }
    base.update(overrides)
    return base


def test_requires_some_input_before_any_call() -> None:
    llm = FakeLLMClient()
    with pytest.raises(PreconditionError):
        generate_tasks(llm, text="   ", today=TODAY)
    assert llm.calls == []


def test_offline_fails_before_any_call() -> None:
    llm = FakeLLMClient()
    with pytest.raises(PreconditionError):
        generate_tasks(llm, text="CHEM 101", online=False, today=TODAY)
    assert llm.calls == []


def test_missing_credential_has_remediation() -> None:
    with pytest.raises(MissingCredentialError) as ei:
        generate_tasks(None, text="CHEM 101", today=TODAY)
    assert "SMARTSTUDY_OPENROUTER_API_KEY" in ei.value.remediation


def test_request_carries_date_schema_text_and_image() -> None:
    llm = FakeLLMClient.returning_json({"tasks": []})
    generate_tasks(llm, image=b"\x89PNG", image_mime="image/jpeg", text="Week 5 quiz", today=TODAY)

    call = llm.calls[0]
    assert f"Current Date: {TODAY}" in call.prompt
    assert call.image == b"\x89PNG"
    assert call.image_mime == "image/jpeg"
    assert call.extra_text == ["Additional User Notes/Syllabus Text: Week 5 quiz"]
    item_schema = call.schema["properties"]["tasks"]["items"]
    assert item_schema["properties"]["type"]["enum"] == ["ASSIGNMENT", "EXAM", "STUDY_SESSION"]


def test_successful_generation_assigns_fresh_ids_and_todo() -> None:
    llm = FakeLLMClient.returning_json({"tasks": [_item(), _item(title="Lab report", type="ASSIGNMENT")]})
    tasks = generate_tasks(llm, text="syllabus", today=TODAY)

    assert [t.title for t in tasks] == ["Midterm", "Lab report"]
    assert all(t.status == TaskStatus.TODO for t in tasks)
    assert len({t.id for t in tasks}) == 2
    assert tasks[0].type == TaskType.EXAM
    assert tasks[1].type == TaskType.ASSIGNMENT


def test_bare_array_and_code_fence_are_accepted() -> None:
    llm = FakeLLMClient("```json\n" + json.dumps([_item()]) + "\n```")
    tasks = generate_tasks(llm, text="syllabus", today=TODAY)
    assert len(tasks) == 1


@pytest.mark.parametrize("text", ["", "[]", '{"tasks": []}'])
def test_empty_response_returns_empty_list(text: str) -> None:
    assert generate_tasks(FakeLLMClient(text), text="syllabus", today=TODAY) == []


@pytest.mark.parametrize("text", ["not json at all", '{"items": 3}', json.dumps([{"title": ""}, 42])])
def test_unusable_response_raises_generation_error(text: str) -> None:
    with pytest.raises(GenerationError):
        generate_tasks(FakeLLMClient(text), text="syllabus", today=TODAY)


def test_transport_failure_is_wrapped() -> None:
    llm = FakeLLMClient(error=RuntimeError("LLM network/timeout error."))
    with pytest.raises(GenerationError):
        generate_tasks(llm, text="syllabus", today=TODAY)


def test_malformed_elements_are_dropped_individually() -> None:
    payload = {"tasks": [_item(), _item(dueDate="next week"), _item(subject=" "), _item(title="Reading", type="STUDY_SESSION")]}
    tasks = generate_tasks(FakeLLMClient.returning_json(payload), text="syllabus", today=TODAY)
    assert [t.title for t in tasks] == ["Midterm", "Reading"]


def test_unknown_type_falls_back_to_study_session() -> None:
    for raw_type in ("LECTURE", "REVIEW", None, 7):
        task = parse_generated_task(_item(type=raw_type, priority=None, durationMinutes=None))
        assert task.type == TaskType.STUDY_SESSION
        assert task.priority == Priority.LOW
        assert task.duration_minutes == 60


def test_type_and_priority_defaults_follow_type() -> None:
    exam = parse_generated_task(_item(type="exam", priority="urgent", durationMinutes=0))
    assert exam.type == TaskType.EXAM
    assert exam.priority == Priority.HIGH
    assert exam.duration_minutes == 120

    hw = parse_generated_task(_item(type="Assignment", priority="LOW", durationMinutes=45.4))
    assert hw.type == TaskType.ASSIGNMENT
    assert hw.priority == Priority.LOW
    assert hw.duration_minutes == 45


def test_non_object_element_is_rejected() -> None:
    with pytest.raises(TaskValidationError):
        parse_generated_task(["Midterm"])
