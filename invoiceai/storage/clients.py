"""Client persistence on top of LocalStorage."""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from invoiceai.models.client import Client, ClientInput
from invoiceai.storage.local import LocalStorage

logger = logging.getLogger(__name__)


class ClientStore:
    """
    Stores the client list as a JSON array under a single key.

    Reads never fail: a missing key is an empty list, and a corrupt document
    is logged and treated as empty. Writes raise StorageError.
    """

    def __init__(self, storage: LocalStorage, key: str = "invoiceAI_clients"):
        self.storage = storage
        self.key = key

    def get_clients(self) -> list[Client]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            return [Client.model_validate(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.error(f"Error reading clients from storage key {self.key}: {e}")
            return []

    def get_client_by_id(self, client_id: str) -> Optional[Client]:
        return next((c for c in self.get_clients() if c.id == client_id), None)

    def find_client_by_dni(self, dni: str) -> Optional[Client]:
        """Look a client up by DNI, ignoring case."""
        wanted = dni.strip().lower()
        return next((c for c in self.get_clients() if c.dni.lower() == wanted), None)

    def _write(self, clients: list[Client]) -> None:
        self.storage.set_item(self.key, json.dumps([c.model_dump() for c in clients]))

    def save_client(self, client: Client) -> list[Client]:
        """Insert or replace a client by id, keeping list order."""
        clients = self.get_clients()
        for index, existing in enumerate(clients):
            if existing.id == client.id:
                clients[index] = client
                break
        else:
            clients.append(client)
        self._write(clients)
        return clients

    def add_client(self, values: ClientInput) -> Client:
        client = Client.from_input(values)
        self.save_client(client)
        logger.info(f"Added client {client.id} (DNI {client.dni})")
        return client

    def update_client(self, client: Client) -> list[Client]:
        return self.save_client(client)

    def delete_client(self, client_id: str) -> list[Client]:
        """Remove a client. Invoices linked to it are kept."""
        clients = [c for c in self.get_clients() if c.id != client_id]
        self._write(clients)
        logger.info(f"Deleted client {client_id}")
        return clients
