"""
Home page: pick a client, upload or photograph an invoice, review and save.
"""

import logging
from typing import MutableMapping

import streamlit as st

from invoiceai.config import AppConfig
from invoiceai.llm.client import LLMClient, LLMClientError
from invoiceai.llm.extraction import extract_invoice_data
from invoiceai.llm.images import InvalidImageError, file_to_data_uri
from invoiceai.models.invoice import ExtractedInvoice, StoredInvoice
from invoiceai.storage import ClientStore, InvoiceStore, StorageError
from invoiceai.ui import state as page_state
from invoiceai.ui.clients import add_client_from_form, render_client_form
from invoiceai.ui.formatting import category_details_for, check_image_upload, format_currency, items_from_text

logger = logging.getLogger(__name__)

UPLOAD_EXTENSIONS = ["jpg", "jpeg", "png", "webp", "gif"]


def flash(state: MutableMapping, message: str) -> None:
    """Queue a success message for the next run."""
    state["flash"] = message


def show_flash(state: MutableMapping) -> None:
    message = state.pop("flash", None)
    if message:
        st.success(message)


def render_client_selector(state: MutableMapping, client_store: ClientStore):
    """Choose an existing client or add a new one, which is then selected."""
    st.header("👤 Select Client")
    st.caption("Choose an existing client or add a new one to continue.")

    clients = client_store.get_clients()
    if clients:
        by_id = {c.id: c for c in clients}
        selected_id = st.selectbox(
            "Existing clients",
            options=list(by_id),
            index=None,
            format_func=lambda cid: by_id[cid].display_label,
            placeholder="Select an existing client",
            key=page_state.widget_key(state, "client_selector"),
        )
        if selected_id:
            page_state.select_client(state, by_id[selected_id])
            st.rerun()
    else:
        st.info("No clients found. Add a new one.")

    with st.expander("➕ Add New Client", expanded=not clients):
        values = render_client_form(form_key="selector_new_client", submit_label="Add Client")
        if values is not None:
            client = add_client_from_form(client_store, values)
            if client:
                page_state.select_client(state, client)
                flash(state, f'Client "{client.name}" has been added and selected.')
                st.rerun()


def _sync_uploaded_file(state: MutableMapping, uploaded_file, config: AppConfig) -> None:
    content = uploaded_file.getvalue()
    error = check_image_upload(len(content), uploaded_file.type, config)
    if error:
        st.error(error)
        return
    is_new = state.get("image_from_camera") or state.get("image_name") != uploaded_file.name \
        or len(state.get("image_bytes") or b"") != len(content)
    if is_new:
        page_state.file_selected(state, content, uploaded_file.type, uploaded_file.name)


def render_camera(state: MutableMapping, config: AppConfig):
    """Camera controls and capture."""
    col1, col2 = st.columns(2)
    with col1:
        label = "🚫 Close Camera" if state["show_camera"] else "📷 Use Camera"
        if st.button(label, use_container_width=True):
            page_state.toggle_camera(state)
            st.rerun()
    with col2:
        if state["show_camera"]:
            other = "front" if state["facing_mode"] == page_state.FACING_ENVIRONMENT else "back"
            if st.button(f"🔄 Switch to {other} camera", use_container_width=True):
                page_state.switch_camera(state)
                st.rerun()

    if not state["show_camera"]:
        return

    photo = st.camera_input(
        f"Point the {'back' if state['facing_mode'] == page_state.FACING_ENVIRONMENT else 'front'} "
        "camera at the invoice",
        key=page_state.camera_widget_key(state),
        help="If the camera stays blank, allow camera access in your browser settings and reload the page.",
    )
    if photo is not None:
        content = photo.getvalue()
        error = check_image_upload(len(content), photo.type or "image/jpeg", config)
        if error:
            st.error(error)
            return
        page_state.photo_captured(state, content, photo.type or "image/jpeg")
        st.rerun()


def run_extraction(state: MutableMapping, config: AppConfig) -> None:
    data_uri = file_to_data_uri(state["image_bytes"], state["image_mime"])
    # The sidebar choice is tried first, the other providers remain as fallback
    preferred = state.get("selected_provider")
    client = LLMClient(config=config, preferred_provider=preferred)

    try:
        with st.spinner(f"Extracting with {preferred.value if preferred else 'the first available provider'}..."):
            result = extract_invoice_data(data_uri, config=config, client=client)
    except InvalidImageError as e:
        st.error(f"Invalid image: {e}")
        return
    except LLMClientError as e:
        logger.error(f"AI extraction failed: {e}")
        st.error(f"Failed to extract data with AI. Please try again. ({e})")
        return

    if not result.success:
        for error in result.errors:
            st.error(error)
        return

    page_state.data_extracted(state, result.invoice, state["image_name"], result.warnings)
    flash(state, f"Invoice data extracted using {result.provider_used}.")
    st.rerun()


def render_uploader(state: MutableMapping, config: AppConfig):
    """Render the file upload / camera capture section."""
    st.header("📄 Upload or Capture Invoice")

    uploaded_file = st.file_uploader(
        "Choose an invoice image",
        type=UPLOAD_EXTENSIONS,
        disabled=state["show_camera"],
        key=page_state.widget_key(state, "invoice_file"),
        help=f"JPEG, PNG, WEBP or GIF up to {config.max_file_size_mb} MB",
    )
    if uploaded_file is not None and not state["show_camera"]:
        _sync_uploaded_file(state, uploaded_file, config)

    render_camera(state, config)

    if page_state.has_image(state):
        st.caption(f"Selected: {state['image_name']}")
        st.image(state["image_bytes"], caption="Preview", width=400)

    if st.button(
        "🔍 Extract Data",
        type="primary",
        disabled=not page_state.has_image(state) or state["show_camera"],
    ):
        run_extraction(state, config)


def render_review(state: MutableMapping, invoice_store: InvoiceStore, config: AppConfig):
    """Editable review of the extracted data, then save for the selected client."""
    invoice: ExtractedInvoice = state["extracted_data"]
    client = state["selected_client"]

    st.header("✏️ Review & Edit Data")
    st.caption("Review the extracted information below and save the invoice.")

    for warning in state.get("extraction_warnings", []):
        st.warning(warning)

    # Outside the form so toggling it shows or hides the category field right away
    should_add_category = st.checkbox(
        "Add category details?",
        value=invoice.should_add_category,
        key=page_state.review_key(state, "add_category"),
    )

    with st.form("invoice_review_form"):
        col1, col2 = st.columns(2)
        with col1:
            invoice_number = st.text_input("Invoice Number", value=invoice.invoice_number)
        with col2:
            invoice_date = st.text_input(
                "Invoice Date",
                value=invoice.invoice_date,
                help="e.g. 2024-03-15 or 15/03/2024",
            )

        client_details = st.text_area("Client Details", value=invoice.client_details, height=90)
        company_details = st.text_area("Company Details", value=invoice.company_details, height=90)
        items_text = st.text_area("Items (one per line)", value="\n".join(invoice.items), height=150)
        total_amount = st.number_input(
            f"Total Amount ({config.currency_symbol})",
            value=float(invoice.total_amount),
            format="%.2f",
        )
        category_text = ""
        if should_add_category:
            category_text = st.text_input("Category Details", value=invoice.category_details or "")

        submitted = st.form_submit_button("💾 Save Invoice", type="primary")

    st.caption(f"File: {state['current_file_name']} · Total: {format_currency(invoice.total_amount, config.currency_symbol)}")

    if not submitted:
        return

    edited = ExtractedInvoice(
        invoice_number=invoice_number.strip(),
        invoice_date=invoice_date.strip(),
        client_details=client_details.strip(),
        company_details=company_details.strip(),
        items=items_from_text(items_text),
        total_amount=total_amount,
        should_add_category=should_add_category,
        category_details=category_details_for(should_add_category, category_text),
    )
    stored = StoredInvoice.from_extraction(edited, state["current_file_name"], client)

    try:
        invoice_store.save_invoice(stored)
    except StorageError as e:
        logger.error(f"Saving invoice failed: {e}")
        st.error(f"Could not save the invoice: {e}")
        return

    page_state.invoice_saved(state)
    flash(state, f'Invoice "{stored.file_name}" has been saved successfully.')
    st.rerun()


def render_home(state: MutableMapping, client_store: ClientStore, invoice_store: InvoiceStore, config: AppConfig):
    """Render the three-step capture workflow."""
    show_flash(state)
    step = state["step"]
    client = state["selected_client"]

    if step != page_state.STEP_CLIENT_SELECTION and client is not None:
        if step == page_state.STEP_INVOICE_UPLOAD:
            if st.button("⬅️ Back to Client Selection"):
                page_state.back_to_client_selection(state)
                st.rerun()
        elif st.button("⬅️ Back to Upload"):
            page_state.back_to_upload(state)
            st.rerun()

    if step == page_state.STEP_CLIENT_SELECTION or client is None:
        render_client_selector(state, client_store)
    elif step == page_state.STEP_INVOICE_UPLOAD:
        st.markdown(f"Selected client: **{client.display_label}**")
        render_uploader(state, config)
    elif step == page_state.STEP_DATA_DISPLAY and state["extracted_data"] is not None:
        st.markdown(f"Invoice for client: **{client.display_label}**")
        render_review(state, invoice_store, config)
    else:
        page_state.back_to_upload(state)
        st.rerun()
