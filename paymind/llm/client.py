"""Text generation contracts and per-provider adapters."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from time import perf_counter

import anthropic
import openai
import requests

from paymind.core.config import Config, get_config
from paymind.core.exceptions import EmptyContentError, GenerationError, MissingAPIKeyError
from paymind.llm.providers import (
    AVAILABLE_MODELS,
    DEFAULT_MODELS,
    PROVIDER_INFO,
    VALIDATION_MODELS,
    AIProvider,
    resolve_model,
)
from paymind.llm.validators.basic import validate_non_empty_output

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedText:
    content: str
    provider: str
    model: str
    tokens_used: int | None = None


class TextGenerator(ABC):
    """One provider/model/key binding exposing a single ``generate`` call."""

    provider: AIProvider

    def __init__(self, model: str, api_key: str, max_tokens: int | None = None) -> None:
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens or get_config().LLM_MAX_TOKENS

    def generate(self, system_prompt: str, user_prompt: str) -> GeneratedText:
        """Run one completion; provider failures surface as ``GenerationError``."""
        started = perf_counter()
        try:
            content, tokens_used = self._complete(system_prompt, user_prompt, self.max_tokens)
        except GenerationError:
            raise
        except Exception as exc:
            logger.warning(
                "llm.call.failed",
                extra={
                    "event": "llm.call.failed",
                    "provider": self.provider.value,
                    "model": self.model,
                    "error": str(exc),
                },
            )
            raise GenerationError(str(exc), provider=self.provider.value, model=self.model) from exc

        ok, _reason = validate_non_empty_output(content)
        if not ok:
            logger.warning(
                "llm.call.empty_content",
                extra={"event": "llm.call.empty_content", "provider": self.provider.value, "model": self.model},
            )
            raise EmptyContentError(self.empty_content_hint(), provider=self.provider.value, model=self.model)

        logger.info(
            "llm.call.completed",
            extra={
                "event": "llm.call.completed",
                "provider": self.provider.value,
                "model": self.model,
                "tokens_used": tokens_used,
                "latency_ms": int((perf_counter() - started) * 1000),
            },
        )
        return GeneratedText(
            content=content,
            provider=self.provider.value,
            model=self.model,
            tokens_used=tokens_used,
        )

    def empty_content_hint(self) -> str:
        return (
            f"{PROVIDER_INFO[self.provider]} model '{self.model}' returned an empty response. "
            "Try again or pick a different model."
        )

    @abstractmethod
    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> tuple[str, int | None]:
        """Return ``(content, tokens_used)`` from the provider."""


class AnthropicGenerator(TextGenerator):
    provider = AIProvider.ANTHROPIC

    def _client(self) -> anthropic.Anthropic:
        return anthropic.Anthropic(api_key=self.api_key, max_retries=0)

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> tuple[str, int | None]:
        kwargs = {}
        if system_prompt:
            kwargs["system"] = system_prompt
        response = self._client().messages.create(
            model=self.model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": user_prompt}],
            **kwargs,
        )
        content = "".join(
            getattr(block, "text", "") for block in response.content if getattr(block, "type", None) == "text"
        )
        usage = getattr(response, "usage", None)
        tokens_used = None
        if usage is not None:
            tokens_used = (usage.input_tokens or 0) + (usage.output_tokens or 0)
        return content, tokens_used


class OpenAIGenerator(TextGenerator):
    provider = AIProvider.OPENAI
    base_url: str | None = None
    # Newer OpenAI chat models reject ``max_tokens``.
    token_limit_param = "max_completion_tokens"

    def _client(self) -> openai.OpenAI:
        return openai.OpenAI(api_key=self.api_key, base_url=self.base_url, max_retries=0)

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> tuple[str, int | None]:
        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})
        completion = self._client().chat.completions.create(
            model=self.model,
            messages=messages,
            **{self.token_limit_param: max_tokens},
        )
        content = ""
        if completion.choices:
            content = completion.choices[0].message.content or ""
        usage = getattr(completion, "usage", None)
        return content, (usage.total_tokens if usage is not None else None)

    def empty_content_hint(self) -> str:
        return (
            f"{PROVIDER_INFO[self.provider]} model '{self.model}' returned an empty response. "
            "Reasoning models can spend the whole token budget before writing an answer; "
            "try a non-reasoning model or raise LLM_MAX_TOKENS."
        )


class OpenRouterGenerator(OpenAIGenerator):
    provider = AIProvider.OPENROUTER
    token_limit_param = "max_tokens"

    def __init__(self, model: str, api_key: str, max_tokens: int | None = None) -> None:
        super().__init__(model=model, api_key=api_key, max_tokens=max_tokens)
        self.base_url = get_config().OPENROUTER_BASE_URL

    def empty_content_hint(self) -> str:
        return (
            f"OpenRouter model '{self.model}' returned an empty response. "
            "Free models are often rate limited or overloaded; try another model."
        )


class GeminiGenerator(TextGenerator):
    provider = AIProvider.GEMINI

    def _endpoint(self) -> str:
        return f"{get_config().GEMINI_BASE_URL.rstrip('/')}/models/{self.model}:generateContent"

    def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> tuple[str, int | None]:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        response = requests.post(
            self._endpoint(),
            json=payload,
            headers={"x-goog-api-key": self.api_key},
        )
        if not response.ok:
            raise GenerationError(
                _gemini_error_message(response),
                provider=self.provider.value,
                model=self.model,
            )
        body = response.json()
        candidates = body.get("candidates") or []
        parts = (candidates[0].get("content") or {}).get("parts", []) if candidates else []
        content = "".join(part.get("text", "") for part in parts)
        usage = body.get("usageMetadata") or {}
        return content, usage.get("totalTokenCount")

    def empty_content_hint(self) -> str:
        return (
            f"Gemini model '{self.model}' returned no text. The answer may have been blocked "
            "by safety filters or cut off by the token limit; try another Gemini model."
        )


def _gemini_error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Gemini API error {response.status_code}: {response.text}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Gemini API error {response.status_code}"


_GENERATORS: dict[AIProvider, type[TextGenerator]] = {
    AIProvider.ANTHROPIC: AnthropicGenerator,
    AIProvider.OPENAI: OpenAIGenerator,
    AIProvider.OPENROUTER: OpenRouterGenerator,
    AIProvider.GEMINI: GeminiGenerator,
}


def build_generator(
    provider: AIProvider | str,
    model: str | None = None,
    api_key: str | None = None,
    max_tokens: int | None = None,
) -> TextGenerator:
    """Bind a provider to a model and key, falling back to server-side keys."""
    provider = AIProvider(provider)
    key = (api_key or "").strip() or get_config().provider_api_key(provider.value)
    if not key:
        env_name = f"{provider.value.upper()}_API_KEY"
        raise MissingAPIKeyError(f"{env_name} not configured and no API key supplied.")
    return _GENERATORS[provider](model=resolve_model(provider, model), api_key=key, max_tokens=max_tokens)


def validate_api_key(provider: AIProvider | str, api_key: str) -> tuple[bool, str | None]:
    """Make one minimal call with ``api_key`` and report whether it was accepted."""
    try:
        provider = AIProvider(provider)
    except ValueError:
        return False, "Unknown provider"

    generator = _GENERATORS[provider](
        model=VALIDATION_MODELS[provider],
        api_key=api_key,
        max_tokens=10,
    )
    try:
        generator.generate("", "Hi")
    except EmptyContentError:
        # The key was accepted; a 10-token budget can legitimately produce no text.
        return True, None
    except GenerationError as exc:
        logger.info(
            "settings.api_key.invalid",
            extra={"event": "settings.api_key.invalid", "provider": provider.value, "error": str(exc)},
        )
        return False, str(exc) or "Validation failed"
    return True, None


def provider_catalog(config: Config | None = None) -> list[dict]:
    """Providers with server-key status, default model and selectable models."""
    cfg = config or get_config()
    catalog = []
    for provider in AIProvider:
        catalog.append(
            {
                "id": provider,
                "name": PROVIDER_INFO[provider],
                "configured": bool(cfg.provider_api_key(provider.value)),
                "default_model": DEFAULT_MODELS[provider],
                "models": [{"id": model_id, "name": name} for model_id, name in AVAILABLE_MODELS[provider]],
            }
        )
    return catalog
