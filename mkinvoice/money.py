"""Fixed-point money value stored as an integer number of cents."""
from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmount, InvalidQuantity

SCALE = 2
_FACTOR = 10 ** SCALE

# Plain digits or comma-grouped thousands, optional fraction.
_AMOUNT_RE = re.compile(r"(?P<whole>\d{1,3}(?:,\d{3})+|\d+)(?:\.(?P<fraction>\d+))?", re.ASCII)

Quantity = Union[int, float, str, Decimal]


def to_quantity(value: object) -> Decimal:
    """Convert a quantity-like value to a finite, positive Decimal."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise InvalidQuantity(value)
    try:
        quantity = Decimal(repr(value)) if isinstance(value, float) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidQuantity(value) from None
    if not quantity.is_finite() or quantity <= 0:
        raise InvalidQuantity(value)
    return quantity


@dataclass(frozen=True, order=True)
class Money:
    cents: int = 0

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    @classmethod
    def from_decimal_string(cls, value: str) -> "Money":
        """Parse a non-negative decimal literal such as ``300``, ``10.5`` or ``1,234.50``.

        More than two fractional digits is an error rather than a silent
        truncation.
        """
        if not isinstance(value, str):
            raise InvalidAmount(value)
        match = _AMOUNT_RE.fullmatch(value.strip())
        if match is None:
            raise InvalidAmount(value)
        fraction = match.group("fraction") or ""
        if len(fraction) > SCALE:
            raise InvalidAmount(value, detail=f"at most {SCALE} decimal places are allowed")
        whole = int(match.group("whole").replace(",", ""))
        return cls(whole * _FACTOR + int(fraction.ljust(SCALE, "0")))

    @classmethod
    def coerce(cls, value: object) -> "Money":
        """Build Money from the scalar types a TOML or JSON document can hold."""
        if isinstance(value, bool):
            raise InvalidAmount(value)
        if isinstance(value, float):
            value = Decimal(repr(value))
        if isinstance(value, Decimal):
            # Positional notation, so 1e+16 reads as a whole amount.
            return cls.from_decimal_string(format(value, "f"))
        if isinstance(value, int):
            return cls.from_decimal_string(str(value))
        if isinstance(value, str):
            return cls.from_decimal_string(value)
        raise InvalidAmount(value)

    def multiply(self, quantity: Quantity) -> "Money":
        """Multiply by a positive quantity, rounding half-up to the cent.

        The product is computed with integers, so no digits are lost however
        large the amount or however precise the quantity.
        """
        numerator, denominator = to_quantity(quantity).as_integer_ratio()
        whole, remainder = divmod(abs(self.cents) * numerator, denominator)
        if 2 * remainder >= denominator:
            whole += 1
        return Money(-whole if self.cents < 0 else whole)

    def add(self, other: "Money") -> "Money":
        return Money(self.cents + other.cents)

    def __add__(self, other: object) -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def to_decimal(self) -> Decimal:
        return Decimal(self.cents).scaleb(-SCALE)

    def format(self) -> str:
        """Render as ``1,234.50``; no currency symbol."""
        sign = "-" if self.cents < 0 else ""
        whole, fraction = divmod(abs(self.cents), _FACTOR)
        return f"{sign}{whole:,}.{fraction:0{SCALE}d}"

    def __str__(self) -> str:
        return self.format()
