"""Data models for clients and invoices."""

from .client import Client, ClientInput
from .invoice import ExtractedInvoice, ExtractionResult, InvoiceFilter, StoredInvoice

__all__ = [
    "Client",
    "ClientInput",
    "ExtractedInvoice",
    "ExtractionResult",
    "InvoiceFilter",
    "StoredInvoice",
]
