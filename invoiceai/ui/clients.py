"""
Client management page and the client form shared with the home page.
"""

import logging
from typing import MutableMapping, Optional

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from invoiceai.models.client import Client, ClientInput, format_validation_errors
from invoiceai.storage import ClientStore, InvoiceStore, StorageError
from invoiceai.ui.state import back_to_client_selection

logger = logging.getLogger(__name__)


def render_client_form(
    form_key: str,
    submit_label: str = "Save Client",
    initial: Optional[Client] = None,
) -> Optional[ClientInput]:
    """
    Render the client form.

    Returns:
        Validated form values when submitted and valid, otherwise None
    """
    with st.form(form_key, clear_on_submit=False):
        dni = st.text_input("DNI", value=initial.dni if initial else "", placeholder="12345678A")
        name = st.text_input("Name", value=initial.name if initial else "")
        email = st.text_input("Email (optional)", value=initial.email if initial else "")
        phone = st.text_input("Phone (optional)", value=initial.phone if initial else "")
        address = st.text_input("Address (optional)", value=initial.address if initial else "")
        submitted = st.form_submit_button(submit_label, type="primary")

    if not submitted:
        return None

    try:
        return ClientInput(dni=dni, name=name, email=email, phone=phone, address=address)
    except ValidationError as e:
        for field_name, message in format_validation_errors(e).items():
            st.error(f"{field_name.capitalize()}: {message}")
        return None


def _dni_taken(client_store: ClientStore, dni: str, exclude_id: Optional[str] = None) -> bool:
    existing = client_store.find_client_by_dni(dni)
    return existing is not None and existing.id != exclude_id


def add_client_from_form(client_store: ClientStore, values: ClientInput) -> Optional[Client]:
    """Add a client, reporting duplicate DNIs and storage failures in the page."""
    if _dni_taken(client_store, values.dni):
        st.error(f"A client with DNI {values.dni} already exists.")
        return None
    try:
        return client_store.add_client(values)
    except StorageError as e:
        logger.error(f"Adding client failed: {e}")
        st.error(f"Failed to save client: {e}")
        return None


def update_client_from_form(client_store: ClientStore, client_id: str, values: ClientInput) -> Optional[Client]:
    if _dni_taken(client_store, values.dni, exclude_id=client_id):
        st.error(f"A client with DNI {values.dni} already exists.")
        return None
    client = Client.from_input(values, client_id=client_id)
    try:
        client_store.update_client(client)
    except StorageError as e:
        logger.error(f"Updating client {client_id} failed: {e}")
        st.error(f"Failed to save client: {e}")
        return None
    return client


def clients_table(clients: list[Client], invoice_counts: dict[str, int]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Name": c.name,
                "DNI": c.dni,
                "Email": c.email or "-",
                "Phone": c.phone or "-",
                "Address": c.address or "-",
                "Invoices": invoice_counts.get(c.id, 0),
            }
            for c in clients
        ]
    )


def render_clients_page(state: MutableMapping, client_store: ClientStore, invoice_store: InvoiceStore):
    """Render the client list with add, edit and delete actions."""
    st.header("👥 Manage Clients")

    message = state.pop("clients_flash", None)
    if message:
        st.success(message)

    with st.expander("➕ Add New Client"):
        values = render_client_form(form_key="clients_new_client", submit_label="Add Client")
        if values is not None:
            client = add_client_from_form(client_store, values)
            if client:
                state["clients_flash"] = f'Client "{client.name}" has been added.'
                st.rerun()

    clients = client_store.get_clients()
    if not clients:
        st.info('No clients found. You have not added any clients yet. Use "Add New Client" to start.')
        return

    counts: dict[str, int] = {}
    for invoice in invoice_store.get_invoices():
        counts[invoice.client_id] = counts.get(invoice.client_id, 0) + 1

    st.dataframe(clients_table(clients, counts), use_container_width=True, hide_index=True)

    by_id = {c.id: c for c in clients}
    selected_id = st.selectbox(
        "Select a client to edit or delete",
        options=list(by_id),
        format_func=lambda cid: by_id[cid].display_label,
        key="clients_manage_select",
    )
    selected = by_id[selected_id]

    edit_tab, delete_tab = st.tabs(["✏️ Edit", "🗑️ Delete"])

    with edit_tab:
        values = render_client_form(
            form_key=f"edit_client_{selected.id}",
            submit_label="Save Changes",
            initial=selected,
        )
        if values is not None:
            updated = update_client_from_form(client_store, selected.id, values)
            if updated:
                if state.get("selected_client") is not None and state["selected_client"].id == updated.id:
                    state["selected_client"] = updated
                state["clients_flash"] = f'Client "{updated.name}" has been updated.'
                st.rerun()

    with delete_tab:
        st.warning(
            f"This action cannot be undone. This will permanently delete the client **{selected.name}**. "
            f"Their {counts.get(selected.id, 0)} saved invoice(s) will remain and stay searchable by DNI."
        )
        confirmed = st.checkbox("I understand, delete this client", key=f"confirm_delete_{selected.id}")
        if st.button("Delete", type="primary", disabled=not confirmed, key=f"delete_{selected.id}"):
            try:
                client_store.delete_client(selected.id)
            except StorageError as e:
                logger.error(f"Deleting client {selected.id} failed: {e}")
                st.error(f"Failed to delete client: {e}")
                return
            if state.get("selected_client") is not None and state["selected_client"].id == selected.id:
                back_to_client_selection(state)
            state["clients_flash"] = f'Client "{selected.name}" has been deleted.'
            st.rerun()
