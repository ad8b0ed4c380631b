# src/smartstudy/planner/focus_timer.py

"""
Focus (Pomodoro) timer.

State is (mode, active, remaining). The state machine itself is synchronous
and driven by tick(); run_focus_timer() is the cooperative loop that calls
tick() once per interval, and FocusTimerRunner hosts that loop on its own
event loop in a background thread so the blocking console REPL can run in
parallel.

To stop the loop, cancel the coroutine/task (or FocusTimerRunner.stop()).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

FOCUS_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60
FOCUS_CREDIT_MINUTES = 25


class TimerMode(StrEnum):
    FOCUS = "focus"
    BREAK = "break"


class FocusTimer:
    def __init__(
            self,
            on_focus_complete: Callable[[int], Any] | None = None,
            on_cue: Callable[[], Any] | None = None,
            *,
            lock: threading.RLock | None = None,
    ) -> None:
        self._on_focus_complete = on_focus_complete
        self._on_cue = on_cue
        self.lock = lock or threading.RLock()
        self.mode = TimerMode.FOCUS
        self.active = False
        self.remaining = FOCUS_SECONDS

    # ---- controls ----

    def toggle(self) -> bool:
        with self.lock:
            self.active = not self.active
            return self.active

    def reset(self) -> None:
        """Back to (focus, paused, 25:00). Any partial interval is discarded without credit."""
        with self.lock:
            self.mode = TimerMode.FOCUS
            self.active = False
            self.remaining = FOCUS_SECONDS

    def tick(self) -> None:
        with self.lock:
            if not self.active or self.remaining <= 0:
                return
            self.remaining -= 1
            if self.remaining == 0:
                self._finish_interval()

    def _finish_interval(self) -> None:
        self.active = False
        if self.mode == TimerMode.FOCUS:
            logger.info("Focus interval finished (+%d min)", FOCUS_CREDIT_MINUTES)
            self.mode = TimerMode.BREAK
            self.remaining = BREAK_SECONDS
            self._credit_focus()
            self._play_cue()
        else:
            logger.info("Break finished")
            self.mode = TimerMode.FOCUS
            self.remaining = FOCUS_SECONDS

    def _credit_focus(self) -> None:
        if self._on_focus_complete is None:
            return
        try:
            self._on_focus_complete(FOCUS_CREDIT_MINUTES)
        except Exception:
            logger.exception("Focus credit callback failed.")

    def _play_cue(self) -> None:
        if self._on_cue is None:
            return
        try:
            self._on_cue()
        except Exception:
            logger.debug("Completion cue failed.", exc_info=True)

    # ---- display helpers ----

    def total_seconds(self) -> int:
        return FOCUS_SECONDS if self.mode == TimerMode.FOCUS else BREAK_SECONDS

    def format_remaining(self) -> str:
        mins, secs = divmod(max(0, self.remaining), 60)
        return f"{mins:02d}:{secs:02d}"

    def progress_percent(self) -> float:
        return 100.0 - (self.remaining / self.total_seconds()) * 100.0

    def snapshot(self) -> dict[str, Any]:
        with self.lock:
            return {"mode": self.mode.value, "active": self.active, "remaining": self.remaining}


async def run_focus_timer(timer: FocusTimer, *, tick_seconds: float = 1.0) -> None:
    """Tick forever; the only suspension point is the sleep between ticks."""
    sleep_s = max(0.001, float(tick_seconds))
    while True:
        await asyncio.sleep(sleep_s)
        try:
            timer.tick()
        except Exception:
            logger.exception("Focus timer tick failed")


@dataclass(slots=True)
class FocusTimerRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    task: asyncio.Task[None]

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.task.cancel)
        except Exception:
            logger.debug("Failed to signal focus timer stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_focus_timer_in_background(timer: FocusTimer, *, tick_seconds: float = 1.0) -> FocusTimerRunner | None:
    """
    Start the tick loop in a daemon thread with its own event loop.

    The caller owns the returned runner and must stop()+join() it on teardown.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        task = loop.create_task(run_focus_timer(timer, tick_seconds=tick_seconds))

        holder["loop"] = loop
        holder["task"] = task
        ready.set()

        try:
            with contextlib.suppress(asyncio.CancelledError):
                loop.run_until_complete(task)
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="focus-timer", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    task = holder.get("task")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(task, asyncio.Task):
        logger.error("Focus timer thread did not initialize properly.")
        return None

    logger.info("Focus timer thread started.")
    return FocusTimerRunner(thread=t, loop=loop, task=task)
