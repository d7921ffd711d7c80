"""Local key-value persistence for clients and invoices."""

from typing import Optional

from invoiceai.config import AppConfig, get_config

from .clients import ClientStore
from .invoices import InvoiceStore
from .local import LocalStorage, StorageError

__all__ = ["ClientStore", "InvoiceStore", "LocalStorage", "StorageError", "create_stores"]


def create_stores(config: Optional[AppConfig] = None) -> tuple[ClientStore, InvoiceStore]:
    """Build the client and invoice stores for the configured data directory."""
    config = config or get_config()
    storage = LocalStorage(config.storage.data_dir)
    return (
        ClientStore(storage, key=config.storage.clients_key),
        InvoiceStore(storage, key=config.storage.invoices_key),
    )
