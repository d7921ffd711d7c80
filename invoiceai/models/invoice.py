"""
Invoice data models.

ExtractedInvoice mirrors the JSON schema returned by the extraction flow.
StoredInvoice adds the bookkeeping written to local storage. Both serialize
with camelCase keys (invoiceNumber, clientDni, ...) and expose snake_case
attributes in Python.
"""

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from invoiceai.dates import format_display_date
from invoiceai.models.client import validate_dni

if TYPE_CHECKING:
    from invoiceai.models.client import Client


class ExtractedInvoice(BaseModel):
    """Structured fields extracted from an invoice image."""
    model_config = ConfigDict(populate_by_name=True)

    invoice_number: str = Field(default="", alias="invoiceNumber")
    invoice_date: str = Field(default="", alias="invoiceDate")
    client_details: str = Field(default="", alias="clientDetails")
    company_details: str = Field(default="", alias="companyDetails")
    items: list[str] = Field(default_factory=list)
    total_amount: float = Field(default=0.0, alias="totalAmount")
    should_add_category: bool = Field(default=False, alias="shouldAddCategory")
    category_details: Optional[str] = Field(default=None, alias="categoryDetails")

    def extraction_fields(self) -> dict:
        """The extracted fields only, as snake_case keyword arguments."""
        return {name: getattr(self, name) for name in ExtractedInvoice.model_fields}


class StoredInvoice(ExtractedInvoice):
    """An extracted invoice saved for a client."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    file_name: str = Field(default="", alias="fileName")
    upload_date: str = Field(default="", alias="uploadDate")
    client_id: str = Field(default="", alias="clientId")
    client_dni: str = Field(default="", alias="clientDni")

    @classmethod
    def from_extraction(
        cls,
        extracted: ExtractedInvoice,
        file_name: str,
        client: "Client",
        now: Optional[datetime] = None,
    ) -> "StoredInvoice":
        """
        Attach bookkeeping to reviewed extraction output.

        Args:
            extracted: The (possibly edited) extraction result
            file_name: Name of the uploaded file or camera capture
            client: Client the invoice belongs to
            now: Upload timestamp, defaults to the current UTC time
        """
        uploaded = now or datetime.now(timezone.utc)
        return cls(
            **extracted.extraction_fields(),
            file_name=file_name,
            upload_date=uploaded.isoformat(),
            client_id=client.id,
            client_dni=client.dni,
        )

    def to_storage_dict(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_excel_row(self) -> dict:
        """Flatten the invoice to one export row."""
        return {
            "invoice_number": self.invoice_number,
            "invoice_date": format_display_date(self.invoice_date),
            "raw_invoice_date": self.invoice_date,
            "client_dni": self.client_dni,
            "client_details": self.client_details,
            "company_details": self.company_details,
            "items": "\n".join(self.items),
            "item_count": len(self.items),
            "total_amount": self.total_amount,
            "category_details": self.category_details if self.should_add_category else "",
            "file_name": self.file_name,
            "upload_date": self.upload_date,
        }


class ExtractionResult(BaseModel):
    """Outcome of running the extraction flow on one image."""
    success: bool
    invoice: Optional[ExtractedInvoice] = None
    raw_response: str = ""
    provider_used: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class InvoiceFilter(BaseModel):
    """Report filter: client DNI plus an optional inclusive date range."""
    dni: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("dni")
    @classmethod
    def _check_dni(cls, value: str) -> str:
        return validate_dni(value)

    @model_validator(mode="after")
    def _check_range(self) -> "InvoiceFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("End date cannot be earlier than start date.")
        return self
