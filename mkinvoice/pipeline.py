"""Invoice generation stages after parsing: compute, render, convert, write."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .errors import IoError
from .pdf import Converter
from .render import Document, render
from .schemas import Invoice
from .totals import compute

logger = logging.getLogger(__name__)


def write_atomic(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` so readers never see a partial file.

    The bytes go to a temporary sibling first and are moved into place with
    ``os.replace``; on failure the temporary file is removed and ``path`` is
    left untouched.
    """
    path = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise IoError(path, str(exc)) from exc
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise IoError(path, str(exc)) from exc


def render_invoice(invoice: Invoice) -> Document:
    return render(invoice, compute(invoice))


def generate_pdf(
    invoice: Invoice,
    output_path: Path,
    converter: Converter,
    document: Optional[Document] = None,
) -> Path:
    """Convert ``invoice`` and write the PDF to ``output_path``.

    An already rendered ``document`` may be passed to skip rendering.
    """
    if document is None:
        document = render_invoice(invoice)
    pdf = converter.convert(document.encode())
    write_atomic(output_path, pdf)
    logger.info("Wrote invoice %s to %s", invoice.display_id, output_path)
    return output_path

