"""Turn a raw invoice mapping (decoded TOML or JSON) into a validated Invoice.

Validation is fail-fast: sections are walked in document order (metadata,
issuer, recipient, labour, expenses, payment) and the first problem found is
raised with enough context to fix the input: the section, the 1-based entry
index for line items, and the field name.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import tomllib
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from .errors import InvalidAmount, InvalidDate, InvalidQuantity, IoError, MalformedInput, MissingField
from .money import Money, to_quantity
from .schemas import Invoice, LineItem, Metadata, Party, PaymentInfo, Section
from .utils import clean_text, parse_date

logger = logging.getLogger(__name__)

LINE_ITEM_FIELDS = ("date", "description", "unit_price", "quantity")


class InvoiceParser:
    def __init__(self, default_currency: str = "USD") -> None:
        self.default_currency = default_currency

    # Public API
    def parse(self, raw: Mapping[str, Any]) -> Invoice:
        if not isinstance(raw, Mapping):
            raise MalformedInput("invoice", f"expected a table at the top level, got {type(raw).__name__}")

        metadata = self._metadata(raw.get("metadata"))
        issuer = self._party(raw, "issuer")
        recipient = self._party(raw, "recipient")
        labour = self._line_items(raw, "labour")
        expenses = self._line_items(raw, "expenses")
        payment = self._payment(raw)

        invoice = Invoice(
            metadata=metadata,
            issuer=issuer,
            recipient=recipient,
            labour=labour,
            expenses=expenses,
            payment=payment,
        )
        logger.debug(
            "Parsed invoice %s: %d labour, %d expense items",
            invoice.display_id,
            len(invoice.labour),
            len(invoice.expenses),
        )
        return invoice

    # Internals
    def _table(self, raw: Mapping[str, Any], section: str, required: bool = True) -> Optional[Mapping[str, Any]]:
        value = raw.get(section)
        if value is None:
            if required:
                raise MissingField(section)
            return None
        if not isinstance(value, Mapping):
            raise MalformedInput(section, f"expected a table, got {type(value).__name__}")
        return value

    def _metadata(self, value: Any) -> Metadata:
        if value is None:
            return Metadata(currency=self.default_currency)
        if not isinstance(value, Mapping):
            raise MalformedInput("metadata", f"expected a table, got {type(value).__name__}")
        unknown = sorted(set(value) - {"invoice_id", "issue_date", "payment_terms", "currency"})
        if unknown:
            logger.warning("Ignoring unknown metadata keys: %s", ", ".join(unknown))

        issue_date = None
        if clean_text(value.get("issue_date")) is not None:
            issue_date = self._date(value["issue_date"], "issue_date", "metadata")
        return Metadata(
            invoice_id=clean_text(value.get("invoice_id")),
            issue_date=issue_date,
            payment_terms=clean_text(value.get("payment_terms")),
            currency=(clean_text(value.get("currency")) or self.default_currency).upper(),
        )

    def _party(self, raw: Mapping[str, Any], section: str) -> Party:
        table = self._table(raw, section)
        name = clean_text(table.get("name"))
        if name is None:
            raise MissingField("name", section)
        # Blank optional attributes are treated as absent.
        return Party(
            name=name,
            company=clean_text(table.get("company")),
            email=clean_text(table.get("email")),
        )

    def _line_items(self, raw: Mapping[str, Any], section: Section) -> Tuple[LineItem, ...]:
        entries = raw.get(section)
        if entries is None:
            return ()
        if not isinstance(entries, list):
            raise MalformedInput(section, f"expected an array of tables, got {type(entries).__name__}")
        items: List[LineItem] = []
        for index, entry in enumerate(entries, start=1):
            if not isinstance(entry, Mapping):
                raise MalformedInput(f"{section} entry #{index}", f"expected a table, got {type(entry).__name__}")
            items.append(self._line_item(entry, section, index))
        return tuple(items)

    def _line_item(self, entry: Mapping[str, Any], section: Section, index: int) -> LineItem:
        for field in LINE_ITEM_FIELDS:
            if clean_text(entry.get(field)) is None:
                raise MissingField(field, section, index)

        item_date = self._date(entry["date"], "date", section, index)

        try:
            unit_price = Money.coerce(entry["unit_price"])
        except InvalidAmount as exc:
            raise InvalidAmount(entry["unit_price"], "unit_price", section, index, detail=exc.detail) from exc

        try:
            quantity = to_quantity(entry["quantity"])
        except InvalidQuantity as exc:
            raise InvalidQuantity(entry["quantity"], section, index) from exc

        return LineItem(
            section=section,
            index=index,
            date=item_date,
            description=clean_text(entry["description"]),
            unit_price=unit_price,
            quantity=quantity,
        )

    def _date(self, value: Any, field: str, section: str, index: Optional[int] = None) -> dt.date:
        # TOML gives native dates and datetimes; datetime is a date subclass.
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        parsed = parse_date(value) if isinstance(value, str) else None
        if parsed is None:
            raise InvalidDate(value, field, section, index)
        return parsed

    def _payment(self, raw: Mapping[str, Any]) -> PaymentInfo:
        table = self._table(raw, "payment")
        entries: List[Tuple[str, str]] = []
        for key, value in table.items():
            if isinstance(value, (Mapping, list)):
                raise MalformedInput(f"payment.{key}", "expected a scalar value")
            text = clean_text(value)
            if text is None:
                raise MissingField(key, "payment")
            entries.append((str(key), text))
        return PaymentInfo(entries=tuple(entries))


def parse(raw: Mapping[str, Any], default_currency: str = "USD") -> Invoice:
    """Validate ``raw`` and build an Invoice."""
    return InvoiceParser(default_currency=default_currency).parse(raw)


def decode(text: str, source: str, fmt: str = "toml") -> Mapping[str, Any]:
    """Decode invoice text in the given format (``toml`` or ``json``)."""
    try:
        if fmt == "json":
            return json.loads(text)
        return tomllib.loads(text)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise MalformedInput(source, str(exc)) from exc


def load_invoice(path: str | Path, default_currency: str = "USD") -> Invoice:
    """Read, decode and parse an invoice file; ``.json`` files are decoded as JSON, anything else as TOML."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise IoError(path, str(exc)) from exc
    fmt = "json" if path.suffix.lower() == ".json" else "toml"
    logger.debug("Loading %s invoice from %s", fmt.upper(), path)
    return parse(decode(text, str(path), fmt), default_currency=default_currency)


