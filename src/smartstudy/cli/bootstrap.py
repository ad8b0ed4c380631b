# src/smartstudy/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires concrete implementations into AppState (KV files, LLM, timer).
"""

from __future__ import annotations

import logging
import sys

from ..config import get_settings
from ..core.connectivity import Connectivity
from ..core.errors import MissingCredentialError
from ..core.ports import LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..planner.focus_timer import FocusTimer
from ..stats.tracker import StatsTracker
from ..storage.kv import JsonFileKVStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def terminal_bell() -> None:
    """Completion cue for the console: ring the terminal bell."""
    sys.stdout.write("\a")
    sys.stdout.flush()


def build_llm_client(settings) -> LLMClient | None:
    """Return a real client, or None when no API key is configured."""
    try:
        return OpenRouterLLMClient(settings)
    except MissingCredentialError:
        logger.info("No LLM API key configured; AI import disabled, reschedule leaves tasks unchanged.")
        return None


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    kv = JsonFileKVStore(settings.data_dir)

    state = AppState(
        settings=settings,
        task_store=TaskStore(kv, settings.tasks_key),
        stats=StatsTracker(kv, settings.stats_key),
        connectivity=Connectivity(online=not settings.start_offline),
        llm=build_llm_client(settings),
    )
    state.focus_timer = FocusTimer(
        on_focus_complete=state.stats.add_focus_minutes,
        on_cue=terminal_bell,
        lock=state.lock,
    )
    return state


def save_state(state: AppState) -> None:
    """Final snapshot on shutdown (stores already save after each mutation)."""
    with state.lock:
        try:
            state.task_store.save()
        except Exception:
            logger.exception("Failed to save tasks.")
        try:
            state.stats.save()
        except Exception:
            logger.exception("Failed to save stats.")
