"""HTML rendering of an invoice and its totals.

The renderer does no arithmetic of its own: line totals and subtotals come
from ``Totals``. Every value handed to the template is already a display
string, and the Jinja2 environment autoescapes HTML so user-supplied text
cannot inject markup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from .money import Money
from .schemas import Invoice, LineItem, Party, Totals
from .utils import format_date, format_money, format_quantity

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "invoice.html"

PAYMENT_LABELS = {
    "name": "name",
    "bsb": "bsb",
    "acct": "acct",
    "bank": "bank",
    "swift": "bic/swift",
    "iban": "iban",
}

_env = Environment(
    loader=PackageLoader("mkinvoice", "templates"),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class Document:
    """A rendered HTML document."""

    html: str

    def encode(self) -> bytes:
        return self.html.encode("utf-8")


def _party(party: Party) -> Dict[str, Any]:
    return {"name": party.name, "company": party.company, "email": party.email}


def _row(item: LineItem, total: Money, currency: str) -> Dict[str, str]:
    return {
        "date": format_date(item.date),
        "description": item.description,
        "quantity": format_quantity(item.quantity),
        "unit_price": format_money(item.unit_price, currency),
        "total": format_money(total, currency),
    }


def payment_label(key: str) -> str:
    return PAYMENT_LABELS.get(key, key.replace("_", " "))


def build_context(invoice: Invoice, totals: Totals) -> Dict[str, Any]:
    """Template slots for ``invoice.html``; all values are pre-formatted strings."""
    currency = invoice.metadata.currency
    metadata: List[Tuple[str, str]] = []
    if invoice.metadata.invoice_id:
        metadata.append(("invoice #", invoice.metadata.invoice_id))
    if invoice.metadata.issue_date:
        metadata.append(("issue date", format_date(invoice.metadata.issue_date)))
    if invoice.metadata.payment_terms:
        metadata.append(("payment terms", invoice.metadata.payment_terms))

    return {
        "title": f"Invoice {invoice.metadata.invoice_id}" if invoice.metadata.invoice_id else "Invoice",
        "metadata": metadata,
        "issuer": _party(invoice.issuer),
        "recipient": _party(invoice.recipient),
        "labour": [
            _row(item, total, currency) for item, total in zip(invoice.labour, totals.labour_lines, strict=True)
        ],
        "expenses": [
            _row(item, total, currency) for item, total in zip(invoice.expenses, totals.expense_lines, strict=True)
        ],
        "totals": [
            ("Labour Subtotal", format_money(totals.labour_subtotal, currency)),
            ("Expenses Subtotal", format_money(totals.expense_subtotal, currency)),
            ("Balance Due", format_money(totals.grand_total, currency)),
        ],
        "payment": [(payment_label(key), value) for key, value in invoice.payment.items()],
    }


def render(invoice: Invoice, totals: Totals) -> Document:
    """Render ``invoice`` to HTML. Output is identical for identical input."""
    html = _env.get_template(TEMPLATE_NAME).render(**build_context(invoice, totals))
    logger.debug("Rendered invoice %s to %d characters of HTML", invoice.display_id, len(html))
    return Document(html=html)
