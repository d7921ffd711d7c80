"""
Turns raw vision model output into an ExtractedInvoice.

Handles:
- Finding the JSON object in free-form model output
- camelCase or snake_case keys
- Coercion of numbers, item lists and flags
- Validation warnings for the review screen
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from invoiceai.dates import parse_invoice_date
from invoiceai.models.invoice import ExtractedInvoice, ExtractionResult

logger = logging.getLogger(__name__)

# Accepted key spellings per field, first match wins
FIELD_KEYS = {
    "invoice_number": ("invoiceNumber", "invoice_number", "number"),
    "invoice_date": ("invoiceDate", "invoice_date", "date"),
    "client_details": ("clientDetails", "client_details", "client", "customer"),
    "company_details": ("companyDetails", "company_details", "company", "seller"),
    "items": ("items", "line_items", "lineItems"),
    "total_amount": ("totalAmount", "total_amount", "total"),
    "should_add_category": ("shouldAddCategory", "should_add_category"),
    "category_details": ("categoryDetails", "category_details", "category"),
}

TRUE_STRINGS = {"true", "yes", "y", "1", "si", "sí"}


class InvoiceParser:
    """
    Parses LLM responses into ExtractedInvoice.

    Models do not always honour the schema, so every field is coerced to the
    expected type and problems are reported as warnings rather than failures.
    """

    def parse_response(self, response: str) -> ExtractionResult:
        """
        Parse one model response.

        Args:
            response: Raw LLM response string

        Returns:
            ExtractionResult with parsed data or errors
        """
        warnings: list[str] = []

        json_str = self._extract_json(response or "")
        if not json_str:
            return ExtractionResult(
                success=False,
                raw_response=response or "",
                errors=["No valid JSON found in response"],
            )

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            return ExtractionResult(
                success=False,
                raw_response=response,
                errors=[f"JSON parse error: {e}"],
            )

        if not isinstance(data, dict):
            return ExtractionResult(
                success=False,
                raw_response=response,
                errors=["Expected a JSON object in response"],
            )

        try:
            invoice = self._dict_to_invoice(data, warnings)
        except ValidationError as e:
            logger.exception("Invoice parsing failed")
            return ExtractionResult(
                success=False,
                raw_response=response,
                errors=[f"Failed to parse invoice data: {e}"],
                warnings=warnings,
            )

        warnings.extend(self._validate_extraction(invoice))
        return ExtractionResult(
            success=True,
            invoice=invoice,
            raw_response=response,
            warnings=warnings,
        )

    def _extract_json(self, response: str) -> Optional[str]:
        """Return the first JSON object in the text: fenced, embedded or bare."""
        # ```json fenced block
        match = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", response)
        if match:
            return match.group(1)

        # Object embedded in prose
        match = re.search(r"(\{[\s\S]*\})", response)
        if match:
            try:
                json.loads(match.group(1))
                return match.group(1)
            except json.JSONDecodeError:
                pass

        try:
            json.loads(response.strip())
            return response.strip()
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _lookup(data: dict, field: str) -> Any:
        for key in FIELD_KEYS[field]:
            if key in data and data[key] is not None:
                return data[key]
        return None

    def _dict_to_invoice(self, data: dict, warnings: list) -> ExtractedInvoice:
        """Build an ExtractedInvoice from loosely keyed model output."""
        total = self._parse_number(self._lookup(data, "total_amount"))
        if total is None:
            warnings.append("Total amount missing or not a number, using 0")
            total = 0.0

        should_add_category = self._parse_bool(self._lookup(data, "should_add_category"))
        category_details = self._text(self._lookup(data, "category_details")) or None

        return ExtractedInvoice(
            invoice_number=self._text(self._lookup(data, "invoice_number")),
            invoice_date=self._text(self._lookup(data, "invoice_date")),
            client_details=self._text(self._lookup(data, "client_details")),
            company_details=self._text(self._lookup(data, "company_details")),
            items=self._parse_items(self._lookup(data, "items"), warnings),
            total_amount=total,
            should_add_category=should_add_category,
            category_details=category_details,
        )

    def _text(self, value: Any) -> str:
        """Flatten a scalar or nested value to display text."""
        if value is None:
            return ""
        if isinstance(value, dict):
            return ", ".join(self._text(v) for v in value.values() if v not in (None, ""))
        if isinstance(value, list):
            return ", ".join(self._text(v) for v in value if v not in (None, ""))
        return str(value).strip()

    def _parse_items(self, value: Any, warnings: list) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [line.strip() for line in value.splitlines() if line.strip()]
        if not isinstance(value, list):
            warnings.append(f"Unexpected items value {value!r}, ignoring")
            return []

        items = []
        for entry in value:
            if isinstance(entry, dict):
                description = self._text(entry.get("description") or entry.get("name"))
                quantity = entry.get("quantity")
                text = f"{quantity} x {description}" if quantity not in (None, "") else description
                price = entry.get("total") or entry.get("line_total") or entry.get("price")
                if price not in (None, ""):
                    text = f"{text} - {price}"
                if text:
                    items.append(text)
            elif entry not in (None, ""):
                items.append(self._text(entry))
        return items

    def _parse_number(self, value: Any, default: Optional[float] = None) -> Optional[float]:
        """Read amounts like 1234.5, "$1,234.50" or "1.234,56"."""
        if value is None or isinstance(value, bool):
            return default

        if isinstance(value, (int, float)):
            return float(value)

        if isinstance(value, str):
            # Keep digits, separators and sign
            cleaned = re.sub(r"[^\d.,\-]", "", value)
            if "," in cleaned and "." in cleaned:
                # Whichever separator comes last is the decimal one
                if cleaned.rfind(",") > cleaned.rfind("."):
                    cleaned = cleaned.replace(".", "").replace(",", ".")
                else:
                    cleaned = cleaned.replace(",", "")
            elif "," in cleaned:
                head, _, tail = cleaned.rpartition(",")
                cleaned = f"{head.replace(',', '')}.{tail}" if len(tail) != 3 else cleaned.replace(",", "")
            try:
                return float(cleaned)
            except ValueError:
                return default

        return default

    @staticmethod
    def _parse_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in TRUE_STRINGS
        if isinstance(value, (int, float)):
            return value != 0
        return False

    def _validate_extraction(self, invoice: ExtractedInvoice) -> list[str]:
        """Warnings shown above the review form."""
        warnings = []

        if not invoice.invoice_number:
            warnings.append("Missing invoice number")

        if not invoice.invoice_date:
            warnings.append("Missing invoice date")
        elif parse_invoice_date(invoice.invoice_date) is None:
            warnings.append(
                f"Invoice date '{invoice.invoice_date}' could not be read; "
                "the invoice will not appear in date-filtered reports until it is corrected"
            )

        if not invoice.items:
            warnings.append("No items extracted")

        if invoice.total_amount <= 0:
            warnings.append("Total amount is zero or negative")

        if invoice.should_add_category and not invoice.category_details:
            warnings.append("Category suggested but no category details given")

        return warnings
