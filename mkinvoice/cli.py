"""Command-line entrypoint: turn an invoice file into a PDF."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import Settings
from .errors import ConversionFailed, InvoiceError
from .parser import load_invoice
from .pdf import ChromiumConverter
from .pipeline import generate_pdf, render_invoice, write_atomic

app = typer.Typer(add_completion=False, help="Generate PDF invoices from TOML files")
err_console = Console(stderr=True, soft_wrap=True)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _fail(stage: str, error: InvoiceError) -> None:
    err_console.print(f"[bold red]error[/bold red] ({stage}): {escape(str(error))}")
    raise typer.Exit(code=1)


@app.command()
def build(
    input: Path = typer.Argument(..., help="Invoice description (TOML, or JSON with a .json suffix)"),
    output: Path = typer.Argument(..., help="Path to write the PDF to; overwritten on success"),
    html: Optional[Path] = typer.Option(None, "--html", help="Also write the rendered HTML here once the PDF succeeds"),
    chromium: Optional[Path] = typer.Option(None, "--chromium", help="Chromium executable to print with"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=1, help="Seconds to wait for Chromium"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each pipeline stage"),
) -> None:
    """Render INPUT to HTML and print it to a PDF at OUTPUT."""
    try:
        settings = Settings.from_env()
    except InvoiceError as exc:
        _fail("config", exc)
    _configure_logging("DEBUG" if verbose else settings.log_level)
    logger.debug("Using %s", settings)

    try:
        invoice = load_invoice(input, default_currency=settings.currency)
    except InvoiceError as exc:
        _fail("load", exc)

    document = render_invoice(invoice)
    converter = ChromiumConverter(
        executable=str(chromium) if chromium else settings.chromium,
        timeout=timeout or settings.timeout,
        extra_args=settings.chromium_args,
    )
    try:
        generate_pdf(invoice, output, converter, document=document)
    except InvoiceError as exc:
        _fail("convert" if isinstance(exc, ConversionFailed) else "write", exc)
    print(f"Invoice written to {escape(str(output))}")

    if html is not None:
        try:
            write_atomic(html, document.encode())
        except InvoiceError as exc:
            _fail("write", exc)
        print(f"HTML written to {escape(str(html))}")


def main():
    app()


if __name__ == "__main__":
    main()
