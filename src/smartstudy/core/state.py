# src/smartstudy/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..stats.tracker import StatsTracker
from ..tasks.task_store import TaskStore
from .connectivity import Connectivity
from .ports import LLMClient

if TYPE_CHECKING:
    from ..planner.focus_timer import FocusTimer


@dataclass
class AppState:
    """
    Explicitly owned session state.

    Exactly one TaskStore and one StatsTracker exist per session. Every mutation
    goes through planner.lifecycle (or the focus timer callback) while holding `lock`.
    """

    settings: Any
    task_store: TaskStore
    stats: StatsTracker
    connectivity: Connectivity
    llm: LLMClient | None = None  # None -> no credential configured
    focus_timer: FocusTimer | None = None

    lock: threading.RLock = field(default_factory=threading.RLock)
