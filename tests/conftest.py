"""
Shared pytest fixtures.

Storage fixtures write under pytest's tmp_path so tests never touch the
user's real data directory.
"""

from datetime import datetime, timezone
from io import BytesIO

import pytest
from PIL import Image

from invoiceai.config import AppConfig
from invoiceai.llm.images import file_to_data_uri
from invoiceai.models.client import Client
from invoiceai.models.invoice import ExtractedInvoice, StoredInvoice
from invoiceai.storage import ClientStore, InvoiceStore, LocalStorage


@pytest.fixture
def storage(tmp_path):
    """A LocalStorage rooted in a temporary directory"""
    return LocalStorage(tmp_path / "data")


@pytest.fixture
def client_store(storage):
    return ClientStore(storage)


@pytest.fixture
def invoice_store(storage):
    return InvoiceStore(storage)


@pytest.fixture
def app_config(tmp_path):
    config = AppConfig()
    config.storage.data_dir = tmp_path / "data"
    config.gemini.api_key = "test-gemini-key-0123456789"
    return config


@pytest.fixture
def client():
    return Client(
        id="client-1",
        dni="12345678A",
        name="Ana García",
        email="ana@example.com",
        phone="600123123",
        address="C/ Mayor 3, Madrid",
    )


@pytest.fixture
def extracted_invoice():
    return ExtractedInvoice(
        invoice_number="F-2024-0113",
        invoice_date="15/01/2024",
        client_details="Ana García, C/ Mayor 3, Madrid",
        company_details="Suministros Norte S.L., Bilbao",
        items=["2 x Tóner HP 305A - 120.00", "1 x Papel A4 - 25.50"],
        total_amount=176.06,
        should_add_category=True,
        category_details="Office supplies",
    )


@pytest.fixture
def make_stored_invoice(extracted_invoice, client):
    """Factory for stored invoices with a given date and DNI"""

    def _make(invoice_date="2024-01-15", dni=None, number="F-1", client_id=None):
        owner = client.model_copy(update={
            "dni": dni or client.dni,
            "id": client_id or client.id,
        })
        extracted = extracted_invoice.model_copy(update={
            "invoice_date": invoice_date,
            "invoice_number": number,
        })
        return StoredInvoice.from_extraction(
            extracted,
            file_name=f"{number}.jpg",
            client=owner,
            now=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def png_bytes():
    """A small valid PNG image"""
    buffer = BytesIO()
    Image.new("RGB", (40, 20), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_uri(png_bytes):
    return file_to_data_uri(png_bytes, "image/png")
