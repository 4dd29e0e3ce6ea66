import copy
import datetime as dt
from pathlib import Path

import pytest

from mkinvoice.errors import ConversionFailed

FIXTURES = Path(__file__).parent / "fixtures"

EXAMPLE_INVOICE = {
    "metadata": {"invoice_id": "2024-007", "issue_date": dt.date(2024, 2, 1), "currency": "USD"},
    "issuer": {"name": "Jane Smith", "email": "jane@example.com"},
    "recipient": {"name": "Bob Jones", "company": "Acme Widgets & Co.", "email": "accounts@acme.example"},
    "labour": [
        {"date": dt.date(2024, 1, 8), "description": "Backend work: <API> & auth", "unit_price": 300, "quantity": 4},
        {"date": dt.date(2024, 1, 15), "description": "Frontend work", "unit_price": 300, "quantity": 6},
        {"date": dt.date(2024, 1, 22), "description": 'Deployment "phase 1"', "unit_price": 300, "quantity": 3},
    ],
    "expenses": [
        {"date": dt.date(2024, 1, 10), "description": "Domain registration", "unit_price": 250, "quantity": 2},
        {"date": dt.date(2024, 1, 25), "description": "Server hardware", "unit_price": "2500.00", "quantity": 1},
    ],
    "payment": {
        "name": "Jane Smith",
        "bsb": "123-456",
        "acct": 12345678,
        "bank": "Example Bank",
        "swift": "EXAMPLEXXX",
    },
}

FAKE_PDF = b"%PDF-1.4\n% fake invoice\n%%EOF\n"


class FakeConverter:
    """Records the documents it is given and returns a canned PDF."""

    def __init__(self, output: bytes = FAKE_PDF):
        self.output = output
        self.documents: list[bytes] = []

    def convert(self, document: bytes) -> bytes:
        self.documents.append(document)
        return self.output


class FailingConverter:
    def __init__(self, detail: str = "chromium exited with status 1: boom"):
        self.detail = detail

    def convert(self, document: bytes) -> bytes:
        raise ConversionFailed(self.detail)


@pytest.fixture
def raw_invoice():
    return copy.deepcopy(EXAMPLE_INVOICE)


@pytest.fixture
def example_toml() -> Path:
    return FIXTURES / "example.toml"


@pytest.fixture
def fake_converter():
    return FakeConverter()
