"""HTML-to-PDF conversion through a headless Chromium subprocess."""
from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .errors import ConversionFailed

logger = logging.getLogger(__name__)

CHROMIUM_CANDIDATES = ("chromium", "chromium-browser", "google-chrome", "google-chrome-stable")
PDF_MAGIC = b"%PDF"
DEFAULT_TIMEOUT = 60.0


class Converter(Protocol):
    def convert(self, document: bytes) -> bytes:
        """Return PDF bytes for an HTML document, or raise ConversionFailed."""
        ...


def find_chromium(candidates: Sequence[str] = CHROMIUM_CANDIDATES) -> Optional[str]:
    for name in candidates:
        path = shutil.which(name)
        if path:
            return path
    return None


class ChromiumConverter:
    """Print HTML to PDF with ``chromium --headless --print-to-pdf``."""

    def __init__(
        self,
        executable: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.extra_args = tuple(extra_args)

    # Public API
    def convert(self, document: bytes) -> bytes:
        executable = self.executable or find_chromium()
        if not executable:
            raise ConversionFailed(
                "no Chromium executable found; install chromium or set MKINVOICE_CHROMIUM"
            )

        with tempfile.TemporaryDirectory(prefix="mkinvoice-") as tmp:
            workdir = Path(tmp).resolve()
            html_path = workdir / "invoice.html"
            pdf_path = workdir / "invoice.pdf"
            html_path.write_bytes(document)

            command = self._command(executable, html_path, pdf_path)
            logger.debug("Running %s", " ".join(command))
            self._run(command)

            if not pdf_path.exists():
                raise ConversionFailed(f"{executable} exited successfully but wrote no PDF")
            pdf = pdf_path.read_bytes()

        if not pdf:
            raise ConversionFailed(f"{executable} produced an empty PDF")
        if not pdf.startswith(PDF_MAGIC):
            raise ConversionFailed(f"{executable} produced output that is not a PDF")
        logger.info("Converted %d bytes of HTML to %d bytes of PDF", len(document), len(pdf))
        return pdf

    # Internals
    def _command(self, executable: str, html_path: Path, pdf_path: Path) -> list[str]:
        return [
            executable,
            "--headless",
            "--run-all-compositor-stages-before-draw",
            f"--print-to-pdf={pdf_path}",
            "--no-pdf-header-footer",
            *self.extra_args,
            html_path.as_uri(),
        ]

    def _run(self, command: list[str]) -> None:
        # subprocess.run reads all output and reaps the child on every path,
        # killing it first when the timeout expires.
        try:
            result = subprocess.run(command, capture_output=True, timeout=self.timeout, check=False)
        except FileNotFoundError as exc:
            raise ConversionFailed(f"cannot start {command[0]}: {exc.strerror or exc}") from exc
        except PermissionError as exc:
            raise ConversionFailed(f"cannot execute {command[0]}: {exc.strerror or exc}") from exc
        except subprocess.TimeoutExpired as exc:
            logger.warning("Chromium did not finish within %.0f seconds", self.timeout)
            raise ConversionFailed(f"{command[0]} timed out after {self.timeout:g} seconds") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.warning("Chromium exited with status %d", result.returncode)
            raise ConversionFailed(f"{command[0]} exited with status {result.returncode}: {stderr or '<no output>'}")
