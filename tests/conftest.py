# tests/conftest.py

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

import pytest

from smartstudy.core.connectivity import Connectivity
from smartstudy.core.state import AppState
from smartstudy.planner.focus_timer import FocusTimer
from smartstudy.stats.tracker import StatsTracker
from smartstudy.storage.kv import InMemoryKVStore
from smartstudy.tasks.task_models import Task
from smartstudy.tasks.task_store import TaskStore

from .fakes import FakeLLMClient

TODAY = "2024-03-10"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="smartstudy-test",
        data_dir=tmp_path / "data",
        tasks_key="ssp_tasks",
        stats_key="ssp_stats",
        llm_models=["fake/model"],
        start_offline=False,
        focus_tick_seconds=0.01,
    )


@pytest.fixture()
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def make_state(settings: SimpleNamespace, kv: InMemoryKVStore, llm: FakeLLMClient) -> Callable[..., AppState]:
    """
    Build an AppState over an in-memory KV store pre-seeded with `tasks`.

    The stores are real (their persistence behavior is part of what we test);
    only the LLM is faked.
    """

    def _make(tasks: list[Task] | None = None, *, with_llm: bool = True, online: bool = True) -> AppState:
        if tasks is not None:
            kv.set("ssp_tasks", json.dumps([t.to_dict() for t in tasks]))
        state = AppState(
            settings=settings,
            task_store=TaskStore(kv, "ssp_tasks", today=TODAY),
            stats=StatsTracker(kv, "ssp_stats"),
            connectivity=Connectivity(online=online),
            llm=llm if with_llm else None,
        )
        state.focus_timer = FocusTimer(on_focus_complete=state.stats.add_focus_minutes, lock=state.lock)
        return state

    return _make


@pytest.fixture()
def state(make_state) -> AppState:
    return make_state()
