"""Error types raised while loading, rendering and converting invoices."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import HTTPException


class ErrorCode(str, Enum):
    """Stable codes for reporting errors to the CLI and API clients."""

    # Input errors
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_DATE = "INVALID_DATE"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    INVALID_CONFIG = "INVALID_CONFIG"

    # External failures
    CONVERSION_FAILED = "CONVERSION_FAILED"
    IO_ERROR = "IO_ERROR"


def describe_location(section: Optional[str] = None, index: Optional[int] = None) -> str:
    """Human-readable location such as ``labour entry #2`` or ``issuer``."""
    if section is None:
        return "invoice"
    if index is None:
        return section
    return f"{section} entry #{index}"


class InvoiceError(Exception):
    """Base exception with structured error info."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} ({self.detail})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API response format."""
        result: Dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        if self.context:
            result["context"] = self.context
        return result


def _location_context(field: Optional[str], section: Optional[str], index: Optional[int]) -> Dict[str, Any]:
    context: Dict[str, Any] = {}
    if section is not None:
        context["section"] = section
    if index is not None:
        context["index"] = index
    if field is not None:
        context["field"] = field
    return context


class MissingField(InvoiceError):
    """A required field is absent or blank."""

    def __init__(self, field: str, section: Optional[str] = None, index: Optional[int] = None):
        self.field = field
        self.section = section
        self.index = index
        super().__init__(
            code=ErrorCode.MISSING_FIELD,
            message=f"Missing field '{field}' in {describe_location(section, index)}",
            context=_location_context(field, section, index),
        )


class InvalidAmount(InvoiceError):
    """A monetary value is not a non-negative amount with at most two decimals."""

    def __init__(
        self,
        value: Any,
        field: Optional[str] = None,
        section: Optional[str] = None,
        index: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.value = value
        self.field = field
        self.section = section
        self.index = index
        where = f" for '{field}' in {describe_location(section, index)}" if field else ""
        context = _location_context(field, section, index)
        context["value"] = str(value)
        super().__init__(
            code=ErrorCode.INVALID_AMOUNT,
            message=f"Invalid amount {value!r}{where}",
            detail=detail or "expected a non-negative number with at most 2 decimal places",
            context=context,
        )


class InvalidQuantity(InvoiceError):
    """A quantity is not a positive number."""

    def __init__(self, value: Any, section: Optional[str] = None, index: Optional[int] = None):
        self.value = value
        self.section = section
        self.index = index
        where = f" in {describe_location(section, index)}" if section else ""
        context = _location_context("quantity", section, index)
        context["value"] = str(value)
        super().__init__(
            code=ErrorCode.INVALID_QUANTITY,
            message=f"Invalid quantity {value!r}{where}",
            detail="expected a positive number",
            context=context,
        )


class InvalidDate(InvoiceError):
    """A date is not a valid calendar date."""

    def __init__(
        self,
        value: Any,
        field: str = "date",
        section: Optional[str] = None,
        index: Optional[int] = None,
    ):
        self.value = value
        self.field = field
        self.section = section
        self.index = index
        context = _location_context(field, section, index)
        context["value"] = str(value)
        super().__init__(
            code=ErrorCode.INVALID_DATE,
            message=f"Invalid date {value!r} for '{field}' in {describe_location(section, index)}",
            detail="expected a calendar date such as 2024-01-15",
            context=context,
        )


class MalformedInput(InvoiceError):
    """The input could not be decoded or has the wrong shape."""

    def __init__(self, source: str, detail: str):
        super().__init__(
            code=ErrorCode.MALFORMED_INPUT,
            message=f"Malformed input in {source}",
            detail=detail,
            context={"source": source},
        )


class ConfigError(InvoiceError):
    """A setting has an unusable value."""

    def __init__(self, field: str, detail: str):
        super().__init__(
            code=ErrorCode.INVALID_CONFIG,
            message=f"Invalid configuration for '{field}'",
            detail=detail,
            context={"field": field},
        )


class ConversionFailed(InvoiceError):
    """The external HTML-to-PDF converter did not produce a PDF."""

    def __init__(self, detail: str):
        super().__init__(
            code=ErrorCode.CONVERSION_FAILED,
            message="PDF conversion failed",
            detail=detail,
        )


class IoError(InvoiceError):
    """Reading the input or writing the output failed."""

    def __init__(self, path: Path | str, detail: str):
        self.path = Path(path)
        super().__init__(
            code=ErrorCode.IO_ERROR,
            message=f"I/O error on {path}",
            detail=detail,
            context={"path": str(path)},
        )


def to_http_exception(error: InvoiceError) -> HTTPException:
    """Convert an InvoiceError to an HTTPException."""
    status_map = {
        ErrorCode.MISSING_FIELD: 422,
        ErrorCode.INVALID_AMOUNT: 422,
        ErrorCode.INVALID_QUANTITY: 422,
        ErrorCode.INVALID_DATE: 422,
        ErrorCode.MALFORMED_INPUT: 422,
        ErrorCode.INVALID_CONFIG: 500,
        ErrorCode.CONVERSION_FAILED: 502,
        ErrorCode.IO_ERROR: 500,
    }
    return HTTPException(
        status_code=status_map.get(error.code, 500),
        detail=error.to_dict(),
    )
