# src/smartstudy/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the focus timer loop in a
background thread, then runs the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state, save_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..planner.focus_timer import FocusTimerRunner, start_focus_timer_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    runner: FocusTimerRunner | None = None
    if state.focus_timer is not None:
        runner = start_focus_timer_in_background(state.focus_timer, tick_seconds=settings.focus_tick_seconds)

    try:
        run_console_loop(state)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=5.0)
        save_state(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
