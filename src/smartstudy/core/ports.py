# src/smartstudy/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers swappable and makes testing easier.
"""

from typing import Any, Protocol

JsonSchema = dict[str, Any]


class KeyValueStore(Protocol):
    """String blob store (the browser's localStorage equivalent)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class LLMClient(Protocol):
    """
    One-shot JSON completion client (OpenAI/OpenRouter-compatible).

    Returns the raw response text; callers own JSON parsing and validation.
    Raises on transport/auth failures.
    """

    def complete_json(
            self,
            prompt: str,
            *,
            schema: JsonSchema | None = None,
            schema_name: str = "response",
            extra_text: list[str] | None = None,
            image: bytes | None = None,
            image_mime: str = "image/png",
    ) -> str: ...

