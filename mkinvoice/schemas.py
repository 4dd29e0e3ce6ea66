"""Data models used across the parser, totals, renderer, CLI, and API."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Iterator, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .money import Money

Section = Literal["labour", "expenses"]

SECTIONS: Tuple[Section, ...] = ("labour", "expenses")


class Metadata(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    invoice_id: Optional[str] = None
    issue_date: Optional[dt.date] = None
    payment_terms: Optional[str] = None
    currency: str = "USD"


class Party(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    company: Optional[str] = None
    email: Optional[str] = None


class LineItem(BaseModel):
    """A single billable entry; labour and expense items share this shape."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    section: Section
    index: int = Field(ge=1)
    date: dt.date
    description: str = Field(min_length=1)
    unit_price: Money
    quantity: Decimal = Field(gt=0)

    def total(self) -> Money:
        return self.unit_price.multiply(self.quantity)


class PaymentInfo(BaseModel):
    """Named payment attributes, kept in input order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: Tuple[Tuple[str, str], ...] = ()

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self.entries)

    def get(self, key: str) -> Optional[str]:
        for name, value in self.entries:
            if name == key:
                return value
        return None

    def __len__(self) -> int:
        return len(self.entries)


class Invoice(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    metadata: Metadata = Field(default_factory=Metadata)
    issuer: Party
    recipient: Party
    labour: Tuple[LineItem, ...] = ()
    expenses: Tuple[LineItem, ...] = ()
    payment: PaymentInfo = Field(default_factory=PaymentInfo)

    @property
    def is_empty(self) -> bool:
        return not self.labour and not self.expenses

    @property
    def display_id(self) -> str:
        """Fallback identifier for log messages."""
        return self.metadata.invoice_id or "<unnumbered>"


class Totals(BaseModel):
    """Derived amounts; computed fresh for every render."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    labour_subtotal: Money
    expense_subtotal: Money
    grand_total: Money
    # One entry per line item, in input order.
    labour_lines: Tuple[Money, ...] = ()
    expense_lines: Tuple[Money, ...] = ()
