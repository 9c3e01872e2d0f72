"""Provider identifiers and model catalogs."""

from __future__ import annotations

from enum import Enum


class AIProvider(str, Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    GEMINI = "gemini"


DEFAULT_MODELS: dict[AIProvider, str] = {
    AIProvider.ANTHROPIC: "claude-sonnet-4-5-20250929",
    AIProvider.OPENAI: "gpt-5.2",
    AIProvider.OPENROUTER: "google/gemini-2.0-flash-exp:free",
    AIProvider.GEMINI: "gemini-2.5-flash",
}

# Cheapest model per provider, used only for API-key checks.
VALIDATION_MODELS: dict[AIProvider, str] = {
    AIProvider.ANTHROPIC: "claude-3-haiku-20240307",
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.OPENROUTER: "openai/gpt-4o-mini",
    AIProvider.GEMINI: "gemini-2.0-flash-lite",
}

PROVIDER_INFO: dict[AIProvider, str] = {
    AIProvider.ANTHROPIC: "Anthropic",
    AIProvider.OPENAI: "OpenAI",
    AIProvider.OPENROUTER: "OpenRouter",
    AIProvider.GEMINI: "Google",
}

AVAILABLE_MODELS: dict[AIProvider, list[tuple[str, str]]] = {
    AIProvider.ANTHROPIC: [
        ("claude-opus-4-5-20251124", "Claude Opus 4.5"),
        ("claude-sonnet-4-5-20250929", "Claude Sonnet 4.5"),
        ("claude-opus-4-1-20250805", "Claude Opus 4.1"),
        ("claude-sonnet-4-20250514", "Claude Sonnet 4"),
    ],
    AIProvider.OPENAI: [
        ("gpt-5.2", "GPT-5.2"),
        ("gpt-5.1", "GPT-5.1"),
        ("gpt-5", "GPT-5"),
        ("gpt-4.1", "GPT-4.1"),
        ("o4-mini", "o4-mini (Fast Reasoning)"),
    ],
    AIProvider.OPENROUTER: [
        ("google/gemini-2.0-flash-exp:free", "Gemini 2.0 Flash (free)"),
        ("deepseek/deepseek-r1-0528:free", "DeepSeek R1 Reasoning (free)"),
        ("meta-llama/llama-3.3-70b-instruct:free", "Llama 3.3 70B (free)"),
        ("mistralai/mistral-small-3.1-24b-instruct:free", "Mistral Small 3.1 (free)"),
        ("google/gemini-2.5-pro", "Gemini 2.5 Pro"),
        ("google/gemini-2.5-flash", "Gemini 2.5 Flash"),
        ("anthropic/claude-sonnet-4", "Claude Sonnet 4"),
        ("anthropic/claude-3.5-haiku", "Claude 3.5 Haiku"),
        ("openai/gpt-4o", "GPT-4o"),
        ("openai/gpt-4o-mini", "GPT-4o Mini"),
        ("deepseek/deepseek-v3.2", "DeepSeek V3.2"),
        ("meta-llama/llama-4-maverick", "Llama 4 Maverick"),
    ],
    AIProvider.GEMINI: [
        ("gemini-2.5-flash", "Gemini 2.5 Flash (Recommended)"),
        ("gemini-2.5-pro", "Gemini 2.5 Pro"),
        ("gemini-2.0-flash", "Gemini 2.0 Flash"),
        ("gemini-2.0-flash-lite", "Gemini 2.0 Flash-Lite"),
    ],
}


def resolve_model(provider: AIProvider, model: str | None) -> str:
    if model and model.strip():
        return model.strip()
    return DEFAULT_MODELS[provider]
