# src/smartstudy/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
import mimetypes
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..ai.generator import generate_tasks
from ..core.errors import PreconditionError, SmartStudyError, TaskNotFoundError, friendly_error_message
from ..core.state import AppState
from ..planner import views
from ..planner.lifecycle import add_tasks, apply_reschedule, complete_task
from ..tasks.task_models import Task, TaskStatus, today_iso

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _short_id(task_id: str) -> str:
    return task_id[:8]


def _format_task(t: Task) -> str:
    mark = "x" if t.status == TaskStatus.COMPLETED else " "
    srs = " (review)" if t.is_spaced_repetition else ""
    return (
        f"[{mark}] {_short_id(t.id):<8} {t.due_date}  {t.title} "
        f"- {t.subject} ({t.type.value}, {t.priority.value}, {t.duration_minutes} min){srs}"
    )


def resolve_task_id(state: AppState, token: str) -> str:
    """Accept a full id or a unique prefix of one."""
    tasks = state.task_store.all()
    if any(t.id == token for t in tasks):
        return token
    matches = [t.id for t in tasks if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    raise TaskNotFoundError(token)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Network: {'online' if state.connectivity.is_online else 'offline'}\n"
        f"  AI: {'configured' if state.llm is not None else 'no API key'}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Tasks stored: {len(state.task_store)}"
    )


def cmd_today(state: AppState, args: list[str]) -> str:
    today = today_iso()
    tasks = state.task_store.all()
    agenda = views.todays_agenda(tasks, today)
    done = views.completed_today(tasks, today)
    lines = [f"Today ({today}): {len(agenda)} to do, {done} completed."]
    lines.extend(_format_task(t) for t in agenda)
    missed = views.overdue(tasks, today)
    if missed:
        lines.append(f"{len(missed)} overdue task(s). Use /overdue or /reschedule.")
    return "\n".join(lines)


def cmd_overdue(state: AppState, args: list[str]) -> str:
    missed = views.overdue(state.task_store.all(), today_iso())
    if not missed:
        return "Nothing overdue."
    return "\n".join([f"Overdue ({len(missed)}):", *(_format_task(t) for t in missed)])


def cmd_schedule(state: AppState, args: list[str]) -> str:
    tasks = views.full_schedule(state.task_store.all())
    if not tasks:
        return "No tasks found. Import a syllabus with /import."
    return "\n".join(["Full schedule:", *(_format_task(t) for t in tasks)])


def cmd_progress(state: AppState, args: list[str]) -> str:
    rows = views.subject_progress(state.task_store.all())
    if not rows:
        return "No subjects yet."
    lines = ["Subject progress:"]
    for p in rows:
        lines.append(f"  {p.subject}: {p.completed}/{p.total} ({p.percent}%) {p.color}")
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.stats.stats
    lp = state.stats.level_progress()
    badges = ", ".join(s.badges) or "none"
    return (
        "Stats:\n"
        f"  Level {lp.level} - XP {lp.xp} (next: {lp.next_threshold}, {lp.percent}%)\n"
        f"  Streak: {s.streak} day(s)\n"
        f"  Focus: {s.total_focus_minutes} min\n"
        f"  Badges: {badges}"
    )


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task id>"
    try:
        task_id = resolve_task_id(state, args[0])
        result = complete_task(state, task_id)
    except TaskNotFoundError as e:
        return str(e)

    if result.already_completed:
        return f"Already completed: {result.task.title}"
    lines = [f"Completed: {result.task.title} (+{result.xp_awarded} XP)"]
    for r in result.reviews:
        lines.append(f"  Scheduled {r.title} on {r.due_date}")
    for b in result.badges_earned:
        lines.append(f"  Badge earned: {b}")
    return "\n".join(lines)


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /import some syllabus text ...
    /import --image path/to/syllabus.png [extra notes ...]
    """
    image: bytes | None = None
    mime = "image/png"
    rest = list(args)
    if rest and rest[0] == "--image":
        if len(rest) < 2:
            return "Usage: /import --image PATH [notes...]"
        path = Path(rest[1]).expanduser()
        try:
            image = path.read_bytes()
        except OSError as e:
            return f"Cannot read image {path}: {e.strerror or e}"
        mime = mimetypes.guess_type(path.name)[0] or "image/png"
        rest = rest[2:]

    if emit:
        with contextlib.suppress(Exception):
            emit("[AI] Analyzing syllabus... this may take a moment.")

    try:
        tasks = generate_tasks(
            state.llm,
            image=image,
            image_mime=mime,
            text=" ".join(rest),
            online=state.connectivity.is_online,
        )
    except SmartStudyError as e:
        return friendly_error_message(e)

    if not tasks:
        return "No tasks found in that syllabus."
    add_tasks(state, tasks)
    return "\n".join([f"Imported {len(tasks)} task(s):", *(_format_task(t) for t in tasks)])


def cmd_reschedule(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        with contextlib.suppress(Exception):
            emit("[AI] Finding new dates for overdue tasks...")
    try:
        moved = apply_reschedule(state)
    except PreconditionError as e:
        return str(e)
    if not moved:
        return "Nothing to reschedule."
    return "\n".join([f"Rescheduled {len(moved)} task(s):", *(_format_task(t) for t in moved)])


def cmd_focus(state: AppState, args: list[str]) -> str:
    """
    /focus          -> show timer
    /focus start    -> start/resume
    /focus pause    -> pause
    /focus reset    -> back to 25:00 focus (no credit)
    """
    timer = state.focus_timer
    if timer is None:
        return "Focus timer is not available."

    sub = args[0].lower() if args else "status"
    if sub in ("start", "resume", "pause"):
        with timer.lock:
            if timer.active != (sub != "pause"):
                timer.toggle()
    elif sub == "toggle":
        timer.toggle()
    elif sub == "reset":
        timer.reset()
    elif sub != "status":
        return "Usage: /focus [start|pause|reset|status]"

    snap = timer.snapshot()
    label = "Deep Work Mode" if snap["mode"] == "focus" else "Rest & Recharge"
    running = "running" if snap["active"] else "paused"
    return f"{label}: {timer.format_remaining()} ({running}, {timer.progress_percent():.0f}% done)"


def cmd_online(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Network is {'online' if state.connectivity.is_online else 'offline'}. Use /online on|off."
    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        state.connectivity.set_online(True)
        return "Online mode."
    if arg in ("off", "0", "false", "no"):
        state.connectivity.set_online(False)
        return "Offline mode. Planner is working in local mode."
    return "Usage: /online on or /online off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show network/AI/storage status.")
registry.register("today", cmd_today, help_text="Today's agenda.", aliases=["day"])
registry.register("overdue", cmd_overdue, help_text="Overdue tasks.")
registry.register("schedule", cmd_schedule, help_text="All tasks by due date.", aliases=["all"])
registry.register("progress", cmd_progress, help_text="Completion per subject.")
registry.register("stats", cmd_stats, help_text="XP, level, streak, focus minutes, badges.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id or id prefix>.")
registry.register("import", cmd_import, help_text="AI syllabus import: /import [--image PATH] [text...].")
registry.register("reschedule", cmd_reschedule, help_text="Move overdue tasks to new dates (AI).")
registry.register("focus", cmd_focus, help_text="Focus timer: /focus start | pause | reset | status.")
registry.register("online", cmd_online, help_text="Simulate connectivity: /online on | off.")
