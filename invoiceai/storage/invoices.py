"""Stored invoice persistence and report filtering."""

import json
import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError

from invoiceai.dates import parse_invoice_date
from invoiceai.models.invoice import StoredInvoice
from invoiceai.storage.local import LocalStorage

logger = logging.getLogger(__name__)


class InvoiceStore:
    """Stores saved invoices as a JSON array under a single key."""

    def __init__(self, storage: LocalStorage, key: str = "invoiceAI_invoices"):
        self.storage = storage
        self.key = key

    def get_invoices(self) -> list[StoredInvoice]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            return [StoredInvoice.model_validate(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.error(f"Error reading invoices from storage key {self.key}: {e}")
            return []

    def _write(self, invoices: list[StoredInvoice]) -> None:
        self.storage.set_item(self.key, json.dumps([inv.to_storage_dict() for inv in invoices]))

    def save_invoice(self, invoice: StoredInvoice) -> None:
        invoices = self.get_invoices()
        invoices.append(invoice)
        self._write(invoices)
        logger.info(f"Saved invoice {invoice.id} ({invoice.file_name}) for DNI {invoice.client_dni}")

    def delete_invoice(self, invoice_id: str) -> list[StoredInvoice]:
        invoices = [inv for inv in self.get_invoices() if inv.id != invoice_id]
        self._write(invoices)
        return invoices

    def get_invoices_for_client(self, client_id: str) -> list[StoredInvoice]:
        return [inv for inv in self.get_invoices() if inv.client_id == client_id]

    def get_filtered_invoices(
        self,
        dni: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[StoredInvoice]:
        """
        Invoices for a client DNI within an optional date range.

        DNI comparison ignores case. Both bounds are inclusive, so an invoice
        dated on end_date is included. Invoices whose date cannot be parsed
        are left out.

        Args:
            dni: Client DNI
            start_date: Earliest invoice date to include
            end_date: Latest invoice date to include

        Returns:
            Matching invoices in storage order
        """
        wanted = dni.strip().lower()
        matches = []

        for invoice in self.get_invoices():
            if invoice.client_dni.lower() != wanted:
                continue

            invoice_date = parse_invoice_date(invoice.invoice_date)
            if invoice_date is None:
                logger.warning(f"Invalid date format for invoice {invoice.id}: {invoice.invoice_date!r}")
                continue

            if start_date and invoice_date < start_date:
                continue
            if end_date and invoice_date > end_date:
                continue

            matches.append(invoice)

        return matches
