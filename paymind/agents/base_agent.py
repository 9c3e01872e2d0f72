"""Base contract for the request/response agent stages."""

from __future__ import annotations

import logging
from typing import Any

from paymind.llm.client import GeneratedText, TextGenerator
from paymind.llm.prompt_templates.defaults import build_prompts
from paymind.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)


class BaseAgent:
    """Binds a text generator and the invoice store to one prompt family."""

    name: str = "base"
    prompt_key: str = ""

    def __init__(self, generator: TextGenerator, invoices: InvoiceService) -> None:
        self.generator = generator
        self.invoices = invoices

    def _generate(self, context: dict[str, Any], language: str) -> GeneratedText:
        system_prompt, user_prompt = build_prompts(self.prompt_key, context, language)
        logger.info(
            "agent.call.started",
            extra={
                "event": "agent.call.started",
                "agent": self.name,
                "provider": self.generator.provider.value,
                "model": self.generator.model,
            },
        )
        return self.generator.generate(system_prompt, user_prompt)
