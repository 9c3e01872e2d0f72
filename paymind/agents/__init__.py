"""LLM-backed agent stages."""

from paymind.agents.payment_monitor import PaymentMonitorAgent
from paymind.agents.reminder_generator import ReminderGeneratorAgent
from paymind.agents.response_handler import ResponseHandlerAgent

__all__ = ["PaymentMonitorAgent", "ReminderGeneratorAgent", "ResponseHandlerAgent"]
