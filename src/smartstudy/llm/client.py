# src/smartstudy/llm/client.py

from __future__ import annotations

import base64
import logging
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..core.errors import MissingCredentialError
from ..core.ports import JsonSchema

logger = logging.getLogger(__name__)

_BAD_MODELS: dict[str, float] = {}  # model -> retry_at (monotonic)
_BAD_MODEL_COOLDOWN_SECONDS = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown model id)
    return isinstance(exc, openai.NotFoundError)


def image_data_url(image: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(image).decode('ascii')}"


def build_user_content(
        prompt: str,
        *,
        extra_text: list[str] | None = None,
        image: bytes | None = None,
        image_mime: str = "image/png",
) -> list[dict[str, Any]]:
    """Multi-part user message: instruction, optional image, optional extra text."""
    parts: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
    if image:
        parts.append({"type": "image_url", "image_url": {"url": image_data_url(image, image_mime)}})
    for text in extra_text or []:
        if text:
            parts.append({"type": "text", "text": text})
    return parts


def build_response_format(schema: JsonSchema | None, name: str) -> dict[str, Any]:
    if schema is None:
        return {"type": "json_object"}
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


class OpenRouterLLMClient:
    """
    OpenAI-compatible JSON completion client.

    Behavior:
    - Tries models in the order from settings (SMARTSTUDY_LLM_MODELS).
    - 404 (model not available) -> skip the model for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).
    - Automatic SDK retries are disabled so fallback across models stays quick.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = getattr(settings, "openrouter_base_url", "") or ""

        if not api_key or not str(api_key).strip():
            raise MissingCredentialError()
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set SMARTSTUDY_OPENROUTER_BASE_URL in your .env.")

        self._models: list[str] = [m.strip() for m in (getattr(settings, "llm_models", []) or []) if m.strip()]
        if not self._models:
            raise RuntimeError("LLM model list is empty. Set SMARTSTUDY_LLM_MODELS in your .env.")

        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})

        connect_s = float(getattr(settings, "llm_connect_timeout", 5.0))
        read_s = float(getattr(settings, "llm_read_timeout", 60.0))
        self._client = OpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s),
            max_retries=0,
        )

    def complete_json(
            self,
            prompt: str,
            *,
            schema: JsonSchema | None = None,
            schema_name: str = "response",
            extra_text: list[str] | None = None,
            image: bytes | None = None,
            image_mime: str = "image/png",
    ) -> str:
        content = build_user_content(prompt, extra_text=extra_text, image=image, image_mime=image_mime)
        response_format = build_response_format(schema, schema_name)

        last_error: Exception | None = None
        now = time.monotonic()

        for model in self._models:
            retry_at = _BAD_MODELS.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()
            try:
                resp = self._client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": content}],
                    response_format=response_format,
                    extra_headers=self._headers or None,
                )
                text = (resp.choices[0].message.content or "") if resp.choices else ""
                logger.info("LLM: model=%s answered in %.2fs (%d chars)", model, time.monotonic() - t0, len(text))
                return text

            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (SMARTSTUDY_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    _BAD_MODELS[model] = time.monotonic() + _BAD_MODEL_COOLDOWN_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")
