"""Customer replies fed into the Respond step.

No delivery channel exists, so the default source simulates the reply a
customer might send to the first reminder of the run. Any callable with the
``ReplySource`` signature can replace it, e.g. to read a real inbox.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from paymind.models.enums import InvoiceStatus

if TYPE_CHECKING:
    from paymind.orchestration.state import WorkflowState


@dataclass(frozen=True)
class CustomerReply:
    customer_message: str
    invoice_id: str | None = None


ReplySource = Callable[["WorkflowState", str], CustomerReply]

SIMULATED_REPLIES = {
    "en": {
        "disputed": (
            "Good morning, we received your reminder about invoice {invoice_id}. We do not agree "
            "with the amount: part of the goods was returned last month and was never credited. "
            "Please send us a corrected invoice."
        ),
        "overdue": (
            "Hello, thank you for the reminder about invoice {invoice_id}. We are going through a "
            "temporary cash flow problem. Could we pay half by the end of this month and the rest "
            "within 30 days?"
        ),
        "generic": (
            "Hello, we received your message. Could you send us a copy of the invoice and your "
            "bank details again?"
        ),
    },
    "it": {
        "disputed": (
            "Buongiorno, abbiamo ricevuto il sollecito per la fattura {invoice_id}. Non siamo "
            "d'accordo sull'importo: parte della merce è stata resa il mese scorso e non è mai "
            "stata stornata. Vi chiediamo di inviarci una fattura corretta."
        ),
        "overdue": (
            "Salve, grazie per il promemoria sulla fattura {invoice_id}. Stiamo attraversando un "
            "momento di difficoltà di cassa. Possiamo pagare metà entro fine mese e il resto "
            "entro 30 giorni?"
        ),
        "generic": (
            "Salve, abbiamo ricevuto il vostro messaggio. Potete inviarci di nuovo una copia "
            "della fattura e le coordinate bancarie?"
        ),
    },
}


class SimulatedReplySource:
    """Pick a canned reply matching the first generated reminder."""

    def __call__(self, state: "WorkflowState", language: str = "en") -> CustomerReply:
        replies = SIMULATED_REPLIES.get(language, SIMULATED_REPLIES["en"])
        if not state.generated_messages:
            return CustomerReply(customer_message=replies["generic"])

        first = state.generated_messages[0]
        invoice = next((inv for inv in state.invoices if inv.invoice_id == first.invoice_id), None)
        key = "disputed" if invoice is not None and invoice.status == InvoiceStatus.DISPUTED else "overdue"
        return CustomerReply(
            customer_message=replies[key].format(invoice_id=first.invoice_id),
            invoice_id=first.invoice_id,
        )
