"""Line, subtotal and grand-total computation."""
from __future__ import annotations

from typing import Iterable, Tuple

from .money import Money
from .schemas import Invoice, LineItem, Totals


def line_totals(items: Iterable[LineItem]) -> Tuple[Money, ...]:
    return tuple(item.total() for item in items)


def _sum(amounts: Iterable[Money]) -> Money:
    total = Money.zero()
    for amount in amounts:
        total = total.add(amount)
    return total


def subtotal(items: Iterable[LineItem]) -> Money:
    """Sum of line totals; exact, so summation order does not matter."""
    return _sum(line_totals(items))


def compute(invoice: Invoice) -> Totals:
    """Every derived amount the renderer shows, each line multiplied once."""
    labour_lines = line_totals(invoice.labour)
    expense_lines = line_totals(invoice.expenses)
    labour = _sum(labour_lines)
    expenses = _sum(expense_lines)
    return Totals(
        labour_lines=labour_lines,
        expense_lines=expense_lines,
        labour_subtotal=labour,
        expense_subtotal=expenses,
        grand_total=labour.add(expenses),
    )
