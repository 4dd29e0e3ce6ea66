"""FastAPI application exposing invoice rendering endpoints."""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI
from fastapi.responses import HTMLResponse, Response

from .config import Settings
from .errors import InvoiceError, to_http_exception
from .parser import parse
from .pdf import ChromiumConverter, Converter
from .pipeline import render_invoice
from .schemas import Invoice
from .totals import compute

app = FastAPI(title="mkinvoice", version="0.1.0")


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


def get_converter(settings: Settings = Depends(get_settings)) -> Converter:
    return ChromiumConverter(
        executable=settings.chromium,
        timeout=settings.timeout,
        extra_args=settings.chromium_args,
    )


def _parse(raw: Dict[str, Any], settings: Settings) -> Invoice:
    try:
        return parse(raw, default_currency=settings.currency)
    except InvoiceError as exc:
        raise to_http_exception(exc) from exc


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/render/totals")
def render_totals(raw: Dict[str, Any] = Body(...), settings: Settings = Depends(get_settings)) -> dict[str, str]:
    totals = compute(_parse(raw, settings))
    return {
        "labour_subtotal": totals.labour_subtotal.format(),
        "expense_subtotal": totals.expense_subtotal.format(),
        "grand_total": totals.grand_total.format(),
    }


@app.post("/render/html", response_class=HTMLResponse)
def render_html(raw: Dict[str, Any] = Body(...), settings: Settings = Depends(get_settings)):
    return HTMLResponse(render_invoice(_parse(raw, settings)).html)


@app.post("/render/pdf")
def render_pdf(
    raw: Dict[str, Any] = Body(...),
    settings: Settings = Depends(get_settings),
    converter: Converter = Depends(get_converter),
):
    invoice = _parse(raw, settings)
    try:
        pdf = converter.convert(render_invoice(invoice).encode())
    except InvoiceError as exc:
        raise to_http_exception(exc) from exc
    slug = re.sub(r"[^A-Za-z0-9._-]+", "-", invoice.metadata.invoice_id or "").strip("-")
    filename = f"invoice-{slug}.pdf" if slug else "invoice.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
