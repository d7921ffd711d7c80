"""
InvoiceAI - capture invoices from photos and keep them per client.

This package provides functionality for:
- Vision LLM extraction of invoice fields from an image
- Client management keyed by DNI
- Local key-value persistence and filtered reports
- Excel export of filtered invoices
"""

__version__ = "0.1.0"
__author__ = "InvoiceAI"
