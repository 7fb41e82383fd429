from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger

from app.core.base_client import BaseClient
from app.core.config import settings
from app.core.exceptions import RankingServiceError
from app.core.version import __version__

# Statuses that mean "the free tier refused us", worth one retry on the paid model
FALLBACK_STATUSES = frozenset({402, 403, 429})


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _from_content(choice: dict, message: Any) -> str | None:
    return _non_empty(message.get("content")) if isinstance(message, dict) else None


def _from_fragments(choice: dict, message: Any) -> str | None:
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, list):
        return None
    parts = []
    for part in content:
        if isinstance(part, str):
            text = part
        elif isinstance(part, dict):
            text = _non_empty(part.get("text")) or _non_empty(part.get("content")) or ""
        else:
            text = ""
        if text.strip():
            parts.append(text)
    return "\n".join(parts) if parts else None


def _from_reasoning(choice: dict, message: Any) -> str | None:
    # Reasoning models sometimes put the whole answer there
    return _non_empty(message.get("reasoning")) if isinstance(message, dict) else None


def _from_bare_message(choice: dict, message: Any) -> str | None:
    return _non_empty(message)


def _from_choice_text(choice: dict, message: Any) -> str | None:
    return _non_empty(choice.get("text"))


# Ordered response shapes, first non-empty match wins
TEXT_EXTRACTORS: list[Callable[[dict, Any], str | None]] = [
    _from_content,
    _from_fragments,
    _from_reasoning,
    _from_bare_message,
    _from_choice_text,
]


def extract_text(payload: dict[str, Any]) -> str | None:
    """Pull the generated text out of a chat completion, whatever its shape."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices") or []
    if choices and isinstance(choices[0], dict):
        choice = choices[0]
        message = choice.get("message") or choice.get("delta") or choice
        for extractor in TEXT_EXTRACTORS:
            text = extractor(choice, message)
            if text:
                return text
    return _non_empty(payload.get("output_text"))


class OpenRouterClient(BaseClient):
    """
    Chat completion client for OpenRouter.

    Calls the free primary model first and retries exactly once on the paid
    fallback model when the primary answers 429, 403 or 402. Anything else
    propagates unretried.
    """

    def __init__(
        self,
        api_key: str | None = None,
        primary_model: str | None = None,
        fallback_model: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "Content-Type": "application/json",
            "HTTP-Referer": settings.HOST_NAME,
            "X-Title": f"{settings.APP_NAME}/{__version__}",
        }
        super().__init__(
            base_url=settings.OPENROUTER_BASE_URL,
            timeout=settings.RANKING_TIMEOUT_SECONDS,
            max_retries=1,
            headers=headers,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.OPENROUTER_API_KEY
        self.primary_model = primary_model or settings.RANKING_PRIMARY_MODEL
        self.fallback_model = fallback_model or settings.RANKING_FALLBACK_MODEL

    async def _attempt(self, model: str, messages: list[dict], max_tokens: int, temperature: float) -> str:
        logger.info(f"[OpenRouter] calling model {model} (max_tokens={max_tokens}, messages={len(messages)})")
        try:
            data = await self.post(
                "/chat/completions",
                json={"model": model, "messages": messages, "max_tokens": max_tokens, "temperature": temperature},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:400]
            logger.error(f"[OpenRouter] {model} answered HTTP {status}: {body}")
            raise RankingServiceError(
                f"LLM error {status}", status=status, reason=f"LLM error {status}: {body}"
            ) from e
        except httpx.RequestError as e:
            raise RankingServiceError(f"LLM transport error: {e}") from e
        except ValueError as e:
            raise RankingServiceError(f"LLM returned a non JSON body: {e}") from e

        content = extract_text(data)
        if not content:
            logger.error(f"[OpenRouter] unexpected response shape (no content): {str(data)[:400]}")
            raise RankingServiceError("LLM empty response")

        logger.debug(f"[OpenRouter] extracted content preview: {content[:200]}")
        return content.strip()

    async def chat(
        self,
        messages: list[dict],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if not self.api_key:
            raise RankingServiceError("OPENROUTER_API_KEY missing")

        max_tokens = max_tokens or settings.RANKING_MAX_TOKENS
        temperature = settings.RANKING_TEMPERATURE if temperature is None else temperature

        try:
            return await self._attempt(self.primary_model, messages, max_tokens, temperature)
        except RankingServiceError as e:
            if e.status not in FALLBACK_STATUSES:
                raise
            logger.warning(f"[OpenRouter] free model failed ({e.status}), retrying on {self.fallback_model}")
            return await self._attempt(self.fallback_model, messages, max_tokens, temperature)
