"""LLM module for invoice data extraction using local or cloud vision models."""

from .client import LLMClient, LLMClientError
from .extraction import extract_invoice_data
from .parser import InvoiceParser

__all__ = ["LLMClient", "LLMClientError", "InvoiceParser", "extract_invoice_data"]
