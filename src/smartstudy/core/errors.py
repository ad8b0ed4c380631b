# src/smartstudy/core/errors.py

"""
Error taxonomy.

Generation failures are user-facing and block the action that requested them.
Reschedule failures never reach the user: the rescheduler catches RescheduleError
and degrades to its "move to tomorrow" fallback.
"""

from __future__ import annotations


class SmartStudyError(Exception):
    """Base class for all application errors."""


class PreconditionError(SmartStudyError):
    """Missing input or no connectivity. Raised before any network call."""


class MissingCredentialError(SmartStudyError):
    def __init__(self, message: str | None = None, *, remediation: str | None = None) -> None:
        self.remediation = remediation or (
            "Set SMARTSTUDY_OPENROUTER_API_KEY in your .env (see config.example.py) and restart."
        )
        super().__init__(message or "LLM API key is missing. AI features are unavailable.")


class GenerationError(SmartStudyError):
    """The LLM response for syllabus import was unusable."""


class RescheduleError(SmartStudyError):
    """Network or parse failure while asking the LLM for new dates."""


class TaskValidationError(SmartStudyError, ValueError):
    """A single LLM-produced task element failed validation."""


class TaskNotFoundError(SmartStudyError, KeyError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(task_id)

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


def friendly_error_message(err: Exception) -> str:
    """Map an error to a short line suitable for the console."""
    if isinstance(err, MissingCredentialError):
        return f"{err} {err.remediation}"
    if isinstance(err, PreconditionError):
        return str(err) or "Cannot run this action right now."
    if isinstance(err, GenerationError):
        return "Failed to process syllabus. Please try again."
    if isinstance(err, TaskNotFoundError):
        return str(err)
    msg = str(err).strip()
    return msg or "Unexpected error."
