# tests/test_llm_client.py

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest

from smartstudy.ai.json_utils import extract_json
from smartstudy.core.errors import MissingCredentialError
from smartstudy.llm import client as llm_client
from smartstudy.llm.client import OpenRouterLLMClient, build_response_format, build_user_content


def _settings(**overrides: Any) -> SimpleNamespace:
    base = {
        "openrouter_api_key": "sk-test",
        "openrouter_base_url": "https://openrouter.example/api/v1",
        "llm_models": ["m/first", "m/second"],
        "extra_headers": {"X-Title": "smartstudy-test"},
        "llm_connect_timeout": 1.0,
        "llm_read_timeout": 2.0,
    }
    base.update(overrides)
    return SimpleNamespace(**base)


def _status_error(cls: type[openai.APIStatusError], code: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://openrouter.example/api/v1/chat/completions")
    return cls("boom", response=httpx.Response(code, request=request), body=None)


class _FakeCompletions:
    def __init__(self, outcomes: dict[str, Any]) -> None:
        self.outcomes = outcomes
        self.models: list[str] = []
        self.kwargs: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        model = kwargs["model"]
        self.models.append(model)
        self.kwargs.append(kwargs)
        outcome = self.outcomes[model]
        if isinstance(outcome, Exception):
            raise outcome
        message = SimpleNamespace(content=outcome)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client_with(outcomes: dict[str, Any], monkeypatch: pytest.MonkeyPatch) -> tuple[OpenRouterLLMClient, _FakeCompletions]:
    monkeypatch.setattr(llm_client, "_BAD_MODELS", {})
    client = OpenRouterLLMClient(_settings())
    fake = _FakeCompletions(outcomes)
    client._client = SimpleNamespace(chat=SimpleNamespace(completions=fake))  # type: ignore[assignment]
    return client, fake


def test_missing_key_raises_missing_credential() -> None:
    with pytest.raises(MissingCredentialError):
        OpenRouterLLMClient(_settings(openrouter_api_key=""))


def test_user_content_orders_prompt_image_and_text() -> None:
    parts = build_user_content("Extract tasks", extra_text=["notes", ""], image=b"abc", image_mime="image/jpeg")
    assert [p["type"] for p in parts] == ["text", "image_url", "text"]
    assert parts[1]["image_url"]["url"] == "data:image/jpeg;base64,YWJj"
    assert parts[2]["text"] == "notes"


def test_response_format() -> None:
    assert build_response_format(None, "x") == {"type": "json_object"}
    fmt = build_response_format({"type": "object"}, "tasks")
    assert fmt["json_schema"] == {"name": "tasks", "strict": True, "schema": {"type": "object"}}


def test_falls_back_to_next_model_and_cools_down_404(monkeypatch: pytest.MonkeyPatch) -> None:
    client, fake = _client_with(
        {"m/first": _status_error(openai.NotFoundError, 404), "m/second": '{"tasks": []}'},
        monkeypatch,
    )

    assert client.complete_json("p") == '{"tasks": []}'
    assert client.complete_json("p") == '{"tasks": []}'
    assert fake.models == ["m/first", "m/second", "m/second"]
    assert fake.kwargs[0]["extra_headers"] == {"X-Title": "smartstudy-test"}


def test_auth_error_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    client, fake = _client_with(
        {"m/first": _status_error(openai.AuthenticationError, 401), "m/second": "{}"},
        monkeypatch,
    )
    with pytest.raises(RuntimeError, match="authentication"):
        client.complete_json("p")
    assert fake.models == ["m/first"]


def test_all_models_failing_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    client, _ = _client_with(
        {"m/first": _status_error(openai.RateLimitError, 429), "m/second": _status_error(openai.RateLimitError, 429)},
        monkeypatch,
    )
    with pytest.raises(RuntimeError, match="rate-limited"):
        client.complete_json("p")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('[{"a": 1}]', [{"a": 1}]),
        ('```json\n{"tasks": []}\n```', {"tasks": []}),
        ('Sure! Here you go: [1, 2] Hope it helps.', [1, 2]),
    ],
)
def test_extract_json(raw: str, expected: Any) -> None:
    assert extract_json(raw) == expected


def test_extract_json_rejects_prose() -> None:
    with pytest.raises(ValueError):
        extract_json("no structured data here")
