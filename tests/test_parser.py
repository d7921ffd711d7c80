"""
Tests for the LLM response parser.

Verifies that:
- JSON is found in fenced blocks, surrounding prose or bare
- Alternative key spellings and loose value types are coerced
- Problems surface as warnings, unusable output as errors
"""

import json

import pytest

from invoiceai.llm.parser import InvoiceParser


@pytest.fixture
def parser():
    return InvoiceParser()


@pytest.fixture
def complete_payload():
    return {
        "invoiceNumber": "F-2024-0113",
        "invoiceDate": "15/01/2024",
        "clientDetails": "Ana García, C/ Mayor 3, Madrid",
        "companyDetails": "Suministros Norte S.L.",
        "items": ["2 x Tóner HP 305A - 120.00", "1 x Papel A4 - 25.50"],
        "totalAmount": 176.06,
        "shouldAddCategory": True,
        "categoryDetails": "Office supplies",
    }


def test_parse_plain_json(parser, complete_payload):
    result = parser.parse_response(json.dumps(complete_payload))

    assert result.success
    assert result.errors == []
    assert result.warnings == []
    invoice = result.invoice
    assert invoice.invoice_number == "F-2024-0113"
    assert invoice.items == complete_payload["items"]
    assert invoice.total_amount == 176.06
    assert invoice.should_add_category is True
    assert invoice.category_details == "Office supplies"


def test_parse_fenced_json(parser, complete_payload):
    response = "Here is the data:\n```json\n" + json.dumps(complete_payload, indent=2) + "\n```\nDone."

    result = parser.parse_response(response)

    assert result.success
    assert result.invoice.invoice_number == "F-2024-0113"
    assert result.raw_response == response


def test_parse_json_inside_prose(parser, complete_payload):
    result = parser.parse_response("Sure! " + json.dumps(complete_payload) + " Hope this helps.")
    assert result.success


def test_snake_case_keys_and_currency_string(parser):
    result = parser.parse_response(json.dumps({
        "invoice_number": 42,
        "invoice_date": "2024-03-05",
        "client_details": {"name": "Ana", "city": "Madrid"},
        "company_details": "ACME",
        "items": ["Service"],
        "total_amount": "$1,234.50",
        "should_add_category": "yes",
        "category_details": "Consulting",
    }))

    invoice = result.invoice
    assert invoice.invoice_number == "42"
    assert invoice.client_details == "Ana, Madrid"
    assert invoice.total_amount == 1234.50
    assert invoice.should_add_category is True


@pytest.mark.parametrize("raw, expected", [
    ("1.234,56", 1234.56),
    ("176,06", 176.06),
    ("1,234", 1234.0),
    ("€ 99.90", 99.90),
    (15, 15.0),
])
def test_total_amount_formats(parser, raw, expected):
    result = parser.parse_response(json.dumps({"totalAmount": raw}))
    assert result.invoice.total_amount == pytest.approx(expected)


def test_structured_items_are_flattened(parser):
    result = parser.parse_response(json.dumps({
        "items": [
            {"description": "Widget", "quantity": 2, "total": 20.0},
            {"name": "Shipping"},
            "Gift wrap",
            None,
        ],
    }))
    assert result.invoice.items == ["2 x Widget - 20.0", "Shipping", "Gift wrap"]


def test_items_as_multiline_string(parser):
    result = parser.parse_response(json.dumps({"items": "Line one\n\n  Line two  "}))
    assert result.invoice.items == ["Line one", "Line two"]


def test_missing_fields_produce_warnings(parser):
    result = parser.parse_response("{}")

    assert result.success
    assert result.invoice.total_amount == 0.0
    assert "Total amount missing or not a number, using 0" in result.warnings
    assert "Missing invoice number" in result.warnings
    assert "Missing invoice date" in result.warnings
    assert "No items extracted" in result.warnings
    assert "Total amount is zero or negative" in result.warnings


def test_unreadable_date_warning(parser, complete_payload):
    complete_payload["invoiceDate"] = "mid January"

    result = parser.parse_response(json.dumps(complete_payload))

    assert result.success
    assert result.invoice.invoice_date == "mid January"
    assert any(w.startswith("Invoice date 'mid January' could not be read") for w in result.warnings)


def test_category_flag_without_details(parser, complete_payload):
    complete_payload["categoryDetails"] = ""

    result = parser.parse_response(json.dumps(complete_payload))

    assert result.invoice.category_details is None
    assert result.warnings == ["Category suggested but no category details given"]


def test_no_json_is_an_error(parser):
    result = parser.parse_response("I could not read this invoice.")

    assert not result.success
    assert result.invoice is None
    assert result.errors == ["No valid JSON found in response"]


def test_json_array_is_an_error(parser):
    result = parser.parse_response('["F-1", "F-2"]')

    assert not result.success
    assert result.errors == ["Expected a JSON object in response"]


def test_empty_response(parser):
    result = parser.parse_response("")
    assert not result.success
