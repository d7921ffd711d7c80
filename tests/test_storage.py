"""
Tests for local key-value storage and the client/invoice stores.

Verifies that:
- Values persist across store instances
- Corrupt documents read as empty lists
- Client upsert keeps order and delete keeps invoices
- Report filtering matches DNI ignoring case and honours inclusive dates
"""

import json
from datetime import date

import pytest

from invoiceai.config import AppConfig
from invoiceai.models.client import Client, ClientInput
from invoiceai.storage import ClientStore, InvoiceStore, LocalStorage, StorageError, create_stores


# LocalStorage

def test_get_missing_key_returns_none(storage):
    assert storage.get_item("invoiceAI_clients") is None


def test_set_and_get_item(storage):
    storage.set_item("invoiceAI_clients", "[]")
    assert storage.get_item("invoiceAI_clients") == "[]"
    assert storage.keys() == ["invoiceAI_clients"]


def test_set_item_replaces_value(storage):
    storage.set_item("k", "one")
    storage.set_item("k", "two")
    assert storage.get_item("k") == "two"
    # No temp files left behind
    assert [p.name for p in storage.data_dir.iterdir()] == ["k.json"]


def test_remove_and_clear(storage):
    storage.set_item("a", "1")
    storage.set_item("b", "2")
    storage.remove_item("a")
    assert storage.get_item("a") is None
    storage.clear()
    assert storage.keys() == []


def test_invalid_key_rejected(storage):
    with pytest.raises(ValueError):
        storage.get_item("../escape")


def test_write_failure_raises_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    storage = LocalStorage(blocker / "data")

    with pytest.raises(StorageError):
        storage.set_item("k", "v")


def test_create_stores_uses_configured_keys(tmp_path):
    config = AppConfig()
    config.storage.data_dir = tmp_path
    config.storage.clients_key = "custom_clients"

    client_store, invoice_store = create_stores(config)

    assert client_store.key == "custom_clients"
    assert invoice_store.key == "invoiceAI_invoices"
    assert client_store.storage.data_dir == tmp_path


# ClientStore

def test_add_client_assigns_id_and_persists(client_store, storage):
    added = client_store.add_client(ClientInput(dni="12345678A", name="Ana"))

    assert added.id
    reloaded = ClientStore(storage).get_clients()
    assert [c.id for c in reloaded] == [added.id]
    assert reloaded[0].name == "Ana"


def test_stored_clients_use_plain_json(client_store, storage):
    client_store.add_client(ClientInput(dni="12345678A", name="Ana"))

    data = json.loads(storage.get_item("invoiceAI_clients"))
    assert set(data[0]) == {"id", "dni", "name", "email", "phone", "address"}


def test_save_client_updates_in_place(client_store):
    first = client_store.add_client(ClientInput(dni="11111111A", name="First"))
    second = client_store.add_client(ClientInput(dni="22222222B", name="Second"))

    updated = client_store.save_client(first.model_copy(update={"name": "First Renamed"}))

    assert [c.id for c in updated] == [first.id, second.id]
    assert updated[0].name == "First Renamed"
    assert client_store.get_client_by_id(first.id).name == "First Renamed"


def test_get_client_by_id_missing(client_store):
    assert client_store.get_client_by_id("nope") is None


def test_find_client_by_dni_ignores_case(client_store):
    added = client_store.add_client(ClientInput(dni="12345678A", name="Ana"))
    assert client_store.find_client_by_dni("12345678a").id == added.id
    assert client_store.find_client_by_dni("99999999Z") is None


def test_delete_client_keeps_invoices(client_store, invoice_store, make_stored_invoice):
    added = client_store.add_client(ClientInput(dni="12345678A", name="Ana"))
    invoice_store.save_invoice(make_stored_invoice(client_id=added.id))

    remaining = client_store.delete_client(added.id)

    assert remaining == []
    assert len(invoice_store.get_invoices_for_client(added.id)) == 1


def test_corrupt_clients_document_reads_as_empty(client_store, storage):
    storage.set_item("invoiceAI_clients", "{not json")
    assert client_store.get_clients() == []


# InvoiceStore

def test_save_invoice_appends(invoice_store, make_stored_invoice):
    invoice_store.save_invoice(make_stored_invoice(number="F-1"))
    invoice_store.save_invoice(make_stored_invoice(number="F-2"))

    assert [inv.invoice_number for inv in invoice_store.get_invoices()] == ["F-1", "F-2"]


def test_invoices_are_stored_with_camel_case_keys(invoice_store, storage, make_stored_invoice):
    invoice_store.save_invoice(make_stored_invoice())

    data = json.loads(storage.get_item("invoiceAI_invoices"))[0]
    for key in ("invoiceNumber", "invoiceDate", "clientDetails", "companyDetails", "items",
                "totalAmount", "shouldAddCategory", "categoryDetails",
                "id", "fileName", "uploadDate", "clientId", "clientDni"):
        assert key in data


def test_corrupt_invoices_document_reads_as_empty(invoice_store, storage):
    storage.set_item("invoiceAI_invoices", '{"not": "a list"}')
    assert invoice_store.get_invoices() == []


def test_delete_invoice(invoice_store, make_stored_invoice):
    keep = make_stored_invoice(number="keep")
    drop = make_stored_invoice(number="drop")
    invoice_store.save_invoice(keep)
    invoice_store.save_invoice(drop)

    remaining = invoice_store.delete_invoice(drop.id)

    assert [inv.id for inv in remaining] == [keep.id]


@pytest.fixture
def filled_store(invoice_store, make_stored_invoice):
    invoice_store.save_invoice(make_stored_invoice("2024-01-10", number="jan"))
    invoice_store.save_invoice(make_stored_invoice("15/02/2024", number="feb"))
    invoice_store.save_invoice(make_stored_invoice("2024-03-31", number="mar"))
    invoice_store.save_invoice(make_stored_invoice("sometime last spring", number="bad"))
    invoice_store.save_invoice(make_stored_invoice("2024-02-01", dni="87654321B", number="other"))
    return invoice_store


def _numbers(invoices):
    return [inv.invoice_number for inv in invoices]


def test_filter_by_dni_ignores_case_and_skips_bad_dates(filled_store):
    assert _numbers(filled_store.get_filtered_invoices("12345678a")) == ["jan", "feb", "mar"]


def test_filter_other_client(filled_store):
    assert _numbers(filled_store.get_filtered_invoices("87654321B")) == ["other"]


def test_filter_unknown_dni(filled_store):
    assert filled_store.get_filtered_invoices("00000000X") == []


def test_filter_start_date_inclusive(filled_store):
    result = filled_store.get_filtered_invoices("12345678A", start_date=date(2024, 2, 15))
    assert _numbers(result) == ["feb", "mar"]


def test_filter_end_date_includes_whole_day(filled_store):
    result = filled_store.get_filtered_invoices("12345678A", end_date=date(2024, 3, 31))
    assert _numbers(result) == ["jan", "feb", "mar"]

    result = filled_store.get_filtered_invoices("12345678A", end_date=date(2024, 3, 30))
    assert _numbers(result) == ["jan", "feb"]


def test_filter_single_day_range(filled_store):
    day = date(2024, 2, 15)
    result = filled_store.get_filtered_invoices("12345678A", start_date=day, end_date=day)
    assert _numbers(result) == ["feb"]


def test_filter_on_empty_store(invoice_store):
    assert invoice_store.get_filtered_invoices("12345678A") == []
