# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put the API key in .env (local, gitignored).

Without an API key the planner still works; syllabus import is disabled and
/reschedule leaves overdue tasks where they are.
"""

ENV_VARS = {
    # App / logging
    "SMARTSTUDY_APP_NAME": "App display name (default: smartstudy).",
    "SMARTSTUDY_LOG_LEVEL": "Console logging level (default: INFO).",
    # LLM / OpenRouter
    "SMARTSTUDY_OPENROUTER_API_KEY": "OpenRouter API key (OPENROUTER_API_KEY is accepted as a fallback).",
    "SMARTSTUDY_OPENROUTER_BASE_URL": "OpenAI-compatible base URL (default: https://openrouter.ai/api/v1).",
    "SMARTSTUDY_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "SMARTSTUDY_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout for LLM calls (default: 5).",
    "SMARTSTUDY_LLM_READ_TIMEOUT_SECONDS": "Read timeout for LLM calls (default: 60).",
    "SMARTSTUDY_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "SMARTSTUDY_APP_TITLE": "Optional OpenRouter metadata header title.",
    # Storage (gitignored)
    "SMARTSTUDY_DATA_DIR": "Local data directory (default: .local/smartstudy).",
    "SMARTSTUDY_TASKS_KEY": "Storage key of the task list (default: ssp_tasks).",
    "SMARTSTUDY_STATS_KEY": "Storage key of the user stats (default: ssp_stats).",
    # Runtime
    "SMARTSTUDY_OFFLINE": "Start in offline mode (true/false).",
    "SMARTSTUDY_FOCUS_TICK_SECONDS": "Focus timer tick length in seconds (default: 1).",
}
