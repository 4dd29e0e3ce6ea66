import datetime as dt
import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from mkinvoice.errors import (
    ErrorCode,
    InvalidAmount,
    InvalidDate,
    InvalidQuantity,
    IoError,
    MalformedInput,
    MissingField,
)
from mkinvoice.money import Money
from mkinvoice.parser import decode, load_invoice, parse


class TestParse:
    def test_example_invoice(self, raw_invoice):
        invoice = parse(raw_invoice)

        assert invoice.issuer.name == "Jane Smith"
        assert invoice.issuer.company is None
        assert invoice.recipient.company == "Acme Widgets & Co."
        assert [item.description for item in invoice.labour] == [
            "Backend work: <API> & auth",
            "Frontend work",
            'Deployment "phase 1"',
        ]
        assert [item.index for item in invoice.expenses] == [1, 2]
        assert all(item.section == "expenses" for item in invoice.expenses)
        assert invoice.expenses[1].unit_price == Money.from_decimal_string("2500")
        assert invoice.labour[0].quantity == Decimal(4)
        assert invoice.metadata.issue_date == dt.date(2024, 2, 1)

    def test_payment_keeps_input_order_and_stringifies(self, raw_invoice):
        invoice = parse(raw_invoice)
        assert [key for key, _ in invoice.payment.items()] == ["name", "bsb", "acct", "bank", "swift"]
        assert invoice.payment.get("acct") == "12345678"

    def test_line_items_keep_input_order(self, raw_invoice):
        raw_invoice["labour"].reverse()
        invoice = parse(raw_invoice)
        assert [item.date for item in invoice.labour] == [
            dt.date(2024, 1, 22),
            dt.date(2024, 1, 15),
            dt.date(2024, 1, 8),
        ]

    def test_empty_invoice_is_legal(self, raw_invoice):
        del raw_invoice["labour"]
        raw_invoice["expenses"] = []
        invoice = parse(raw_invoice)
        assert invoice.is_empty

    def test_metadata_is_optional(self, raw_invoice):
        del raw_invoice["metadata"]
        invoice = parse(raw_invoice, default_currency="EUR")
        assert invoice.metadata.invoice_id is None
        assert invoice.metadata.currency == "EUR"

    def test_blank_optional_contact_fields_are_absent(self, raw_invoice):
        raw_invoice["recipient"]["company"] = "   "
        invoice = parse(raw_invoice)
        assert invoice.recipient.company is None

    def test_string_dates_and_decimal_quantities(self, raw_invoice):
        raw_invoice["labour"][0]["date"] = "2024-03-05"
        raw_invoice["labour"][0]["quantity"] = "1.5"
        invoice = parse(raw_invoice)
        assert invoice.labour[0].date == dt.date(2024, 3, 5)
        assert invoice.labour[0].quantity == Decimal("1.5")

    def test_exponent_float_unit_price(self, raw_invoice):
        raw_invoice["labour"][0]["unit_price"] = 1e16
        assert parse(raw_invoice).labour[0].unit_price == Money(10**18)

    def test_datetime_uses_date_part(self, raw_invoice):
        raw_invoice["labour"][0]["date"] = dt.datetime(2024, 3, 5, 17, 30)
        assert parse(raw_invoice).labour[0].date == dt.date(2024, 3, 5)

    def test_invoice_is_immutable(self, raw_invoice):
        invoice = parse(raw_invoice)
        with pytest.raises(ValidationError):
            invoice.issuer.name = "Someone else"


class TestParseErrors:
    def test_missing_description_on_second_labour_entry(self, raw_invoice):
        del raw_invoice["labour"][1]["description"]
        with pytest.raises(MissingField) as excinfo:
            parse(raw_invoice)
        err = excinfo.value
        assert err.field == "description"
        assert err.section == "labour"
        assert err.index == 2
        assert str(err) == "Missing field 'description' in labour entry #2"

    def test_blank_required_field_counts_as_missing(self, raw_invoice):
        raw_invoice["expenses"][0]["description"] = "  "
        with pytest.raises(MissingField) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.context == {"section": "expenses", "index": 1, "field": "description"}

    def test_missing_issuer_name(self, raw_invoice):
        del raw_invoice["issuer"]["name"]
        with pytest.raises(MissingField) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.section == "issuer"

    @pytest.mark.parametrize("section", ["issuer", "recipient", "payment"])
    def test_missing_required_section(self, raw_invoice, section):
        del raw_invoice[section]
        with pytest.raises(MissingField) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.field == section

    def test_three_decimal_unit_price(self, raw_invoice):
        raw_invoice["labour"][2]["unit_price"] = "10.005"
        with pytest.raises(InvalidAmount) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.code == ErrorCode.INVALID_AMOUNT
        assert excinfo.value.context["field"] == "unit_price"
        assert excinfo.value.index == 3

    def test_negative_unit_price(self, raw_invoice):
        raw_invoice["expenses"][0]["unit_price"] = -5
        with pytest.raises(InvalidAmount):
            parse(raw_invoice)

    @pytest.mark.parametrize("quantity", [0, -2, "-0.5", "lots"])
    def test_non_positive_quantity(self, raw_invoice, quantity):
        raw_invoice["labour"][0]["quantity"] = quantity
        with pytest.raises(InvalidQuantity) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.section == "labour"
        assert excinfo.value.index == 1

    @pytest.mark.parametrize("value", ["2024-02-30", "not a date", "March 2024", 20240105])
    def test_invalid_date(self, raw_invoice, value):
        raw_invoice["expenses"][1]["date"] = value
        with pytest.raises(InvalidDate) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.context["section"] == "expenses"
        assert excinfo.value.context["index"] == 2

    def test_invalid_issue_date(self, raw_invoice):
        raw_invoice["metadata"]["issue_date"] = "2024-04-31"
        with pytest.raises(InvalidDate) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.field == "issue_date"

    def test_blank_payment_value(self, raw_invoice):
        raw_invoice["payment"]["bsb"] = ""
        with pytest.raises(MissingField) as excinfo:
            parse(raw_invoice)
        assert excinfo.value.field == "bsb"
        assert excinfo.value.section == "payment"

    def test_line_item_must_be_a_table(self, raw_invoice):
        raw_invoice["labour"][1] = "Frontend work"
        with pytest.raises(MalformedInput):
            parse(raw_invoice)

    def test_fails_on_first_error(self, raw_invoice):
        del raw_invoice["labour"][0]["date"]
        raw_invoice["expenses"][0]["unit_price"] = "1.234"
        with pytest.raises(MissingField):
            parse(raw_invoice)


class TestLoadInvoice:
    def test_load_toml(self, example_toml):
        invoice = load_invoice(example_toml)
        assert invoice.metadata.invoice_id == "2024-007"
        assert len(invoice.labour) == 3
        assert len(invoice.expenses) == 2

    def test_load_json(self, tmp_path, raw_invoice):
        for section in ("labour", "expenses"):
            for item in raw_invoice[section]:
                item["date"] = item["date"].isoformat()
        raw_invoice["metadata"]["issue_date"] = "2024-02-01"
        path = tmp_path / "invoice.json"
        path.write_text(json.dumps(raw_invoice), encoding="utf-8")

        invoice = load_invoice(path)
        assert invoice.labour[0].date == dt.date(2024, 1, 8)

    def test_missing_file(self, tmp_path):
        with pytest.raises(IoError) as excinfo:
            load_invoice(tmp_path / "nope.toml")
        assert "nope.toml" in str(excinfo.value)

    def test_bad_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[issuer\nname = 'x'", encoding="utf-8")
        with pytest.raises(MalformedInput) as excinfo:
            load_invoice(path)
        assert str(path) in str(excinfo.value)

    def test_decode_rejects_bad_json(self):
        with pytest.raises(MalformedInput):
            decode("{", "request", "json")
