"""LLM package: provider adapters, prompts, and output parsing."""

from paymind.llm.client import GeneratedText, TextGenerator, build_generator, validate_api_key
from paymind.llm.providers import AIProvider

__all__ = ["AIProvider", "GeneratedText", "TextGenerator", "build_generator", "validate_api_key"]
