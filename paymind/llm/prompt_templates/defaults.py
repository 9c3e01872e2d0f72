"""System prompts and user-prompt renderers for the three agents."""

from __future__ import annotations

import json
from typing import Any, Callable

LANGUAGE_NAMES = {"en": "English", "it": "Italian"}


def _language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["en"])


def payment_monitor_system_prompt(language: str = "en") -> str:
    return (
        "You are a Payment Monitor Agent specialized in analyzing invoice data.\n\n"
        "Your responsibilities:\n"
        "1. Identify overdue, upcoming and disputed invoices\n"
        "2. Report days overdue or until due for each invoice\n"
        "3. Segment invoices by priority (HIGH/MEDIUM/LOW):\n"
        "   - HIGH: >90 days overdue OR amount due >1,000 OR disputed status\n"
        "   - MEDIUM: 61-90 days overdue\n"
        "   - LOW: everything else still open\n"
        "4. Produce a report with metrics and recommendations\n\n"
        f"Write the report in {_language_name(language)}. "
        "Your role is purely analytical: do not write reminder messages."
    )


def reminder_generator_system_prompt(language: str = "en") -> str:
    return (
        "You are a Reminder Generator Agent specialized in payment reminder messages.\n\n"
        "Adapt tone and urgency to days overdue, priority (HIGH needs a firmer tone) "
        "and the communication channel.\n\n"
        "Channel guidelines:\n"
        "- EMAIL: formal, complete details, IBAN placeholder, professional closing. "
        "Start with a line 'Subject: <subject>' followed by the body.\n"
        "- SMS: max 160 characters, concise, include invoice id and amount.\n"
        "- WHATSAPP: friendly but professional, conversational, emojis allowed.\n\n"
        f"Write the message in {_language_name(language)}. "
        "Always be professional and empathetic."
    )


def response_handler_system_prompt(language: str = "en") -> str:
    return (
        "You are a Response Handler Agent that analyzes customer replies to payment reminders.\n\n"
        "Identify the intent (payment_confirmed, request_info, dispute, request_delay, "
        "payment_promise, already_paid, error_invoice), the sentiment "
        "(positive/neutral/negative), key details (dates, amounts, reasons), "
        "follow-up actions, a draft reply and a risk level (low/medium/high).\n\n"
        f"Write the draft reply in {_language_name(language)}. "
        "Answer with a single JSON object and nothing else."
    )


def render_payment_monitor_prompt(context: dict[str, Any]) -> str:
    invoices = json.dumps(context.get("invoices", []), indent=2, default=str)
    return (
        f"Analyze the following invoices. Today's date: {context.get('today')}\n\n"
        f"Invoice data (JSON):\n{invoices}\n\n"
        "Produce a complete report with:\n"
        "1. General summary\n"
        "2. Overdue invoices (table with days overdue)\n"
        "3. Disputed invoices\n"
        "4. Priority segmentation (HIGH/MEDIUM/LOW)\n"
        "5. Financial statistics\n"
        "6. Top customers by outstanding credit\n"
        "7. Urgent recommendations"
    )


_CHANNEL_INSTRUCTIONS = {
    "email": "Write an email subject line and the complete body.",
    "sms": "Write a short SMS (max 160 characters).",
    "whatsapp": "Write a WhatsApp message with a friendly tone.",
}


def render_reminder_prompt(context: dict[str, Any]) -> str:
    channel = str(context.get("channel", "email")).lower()
    status = "DISPUTED" if context.get("status") == "disputed" else "OVERDUE"
    return (
        "Generate a payment reminder for:\n\n"
        f"Invoice: {context.get('invoice_id')}\n"
        f"Customer: {context.get('customer_name')}\n"
        f"Amount due: {float(context.get('amount_due', 0)):.2f}\n"
        f"Invoice total: {float(context.get('amount_total', 0)):.2f}\n"
        f"Already paid: {float(context.get('amount_paid', 0)):.2f}\n"
        f"Due date: {context.get('due_date')}\n"
        f"Days overdue: {context.get('days_overdue', 0)}\n"
        f"Priority: {context.get('priority') or 'LOW'}\n"
        f"Channel: {channel.upper()}\n"
        f"Customer email: {context.get('customer_email') or '-'}\n"
        f"Customer phone: {context.get('customer_phone') or '-'}\n"
        f"Status: {status}\n\n"
        f"{_CHANNEL_INSTRUCTIONS.get(channel, '')}"
    )


def render_response_handler_prompt(context: dict[str, Any]) -> str:
    invoice = context.get("invoice")
    invoice_context = ""
    if invoice:
        invoice_context = (
            "\nInvoice context:\n"
            f"- ID: {invoice['invoice_id']}\n"
            f"- Customer: {invoice['customer_name']}\n"
            f"- Amount due: {float(invoice['amount_due']):.2f}\n"
            f"- Due date: {invoice['due_date']}\n"
            f"- Days overdue: {invoice.get('days_overdue') or 0}\n"
            f"- Status: {invoice['status']}\n"
        )
    return (
        "Analyze the following customer reply:\n\n"
        f"\"{context.get('customer_message', '')}\"\n"
        f"{invoice_context}\n"
        "Return the analysis in this JSON format:\n"
        "{\n"
        '  "intent": "intent_type",\n'
        '  "intentConfidence": 95,\n'
        '  "sentiment": "positive|neutral|negative",\n'
        '  "extractedInfo": [{"label": "label", "value": "value"}],\n'
        '  "suggestedActions": ["action 1", "action 2"],\n'
        '  "draftResponse": "draft reply",\n'
        '  "riskLevel": "low|medium|high"\n'
        "}"
    )


PromptRenderer = Callable[[dict[str, Any]], str]

DEFAULT_PROMPT_REGISTRY: dict[str, tuple[Callable[[str], str], PromptRenderer]] = {
    "payment_monitor": (payment_monitor_system_prompt, render_payment_monitor_prompt),
    "reminder_generator": (reminder_generator_system_prompt, render_reminder_prompt),
    "response_handler": (response_handler_system_prompt, render_response_handler_prompt),
}


def build_prompts(prompt_key: str, context: dict[str, Any], language: str = "en") -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for a registered agent."""
    entry = DEFAULT_PROMPT_REGISTRY.get(prompt_key)
    if entry is None:
        raise KeyError(f"Unknown prompt key: {prompt_key}")
    system_renderer, user_renderer = entry
    return system_renderer(language), user_renderer(context)
