"""
Reports page: filter saved invoices by client DNI and date range.
"""

import logging
from datetime import date
from typing import MutableMapping, Optional

import streamlit as st
from pydantic import ValidationError

from invoiceai.config import AppConfig
from invoiceai.dates import format_display_date, format_upload_timestamp
from invoiceai.export.excel import ExcelExporter
from invoiceai.models.client import format_validation_errors
from invoiceai.models.invoice import InvoiceFilter, StoredInvoice
from invoiceai.storage import InvoiceStore
from invoiceai.ui.formatting import format_currency

logger = logging.getLogger(__name__)

EARLIEST_DATE = date(1900, 1, 1)


def render_filter_form() -> Optional[InvoiceFilter]:
    """Render the filter form. Returns a validated filter when submitted."""
    st.header("🔎 Filter Invoices")

    with st.form("invoice_filter_form"):
        dni = st.text_input("Client DNI", placeholder="Enter client's DNI")
        col1, col2 = st.columns(2)
        with col1:
            start_date = st.date_input(
                "Start Date", value=None, min_value=EARLIEST_DATE, max_value=date.today()
            )
        with col2:
            end_date = st.date_input(
                "End Date", value=None, min_value=EARLIEST_DATE, max_value=date.today()
            )
        submitted = st.form_submit_button("🔍 Search Invoices", type="primary")

    if not submitted:
        return None

    try:
        return InvoiceFilter(dni=dni, start_date=start_date, end_date=end_date)
    except ValidationError as e:
        for field_name, message in format_validation_errors(e).items():
            label = "DNI" if field_name == "dni" else "Dates"
            st.error(f"{label}: {message}")
        return None


def render_invoice_item(invoice: StoredInvoice, config: AppConfig):
    """One invoice in the result list."""
    with st.container(border=True):
        col1, col2 = st.columns([3, 1])
        with col1:
            st.subheader(f"🧾 Invoice #{invoice.invoice_number or 'N/A'}")
            st.caption(f"Client DNI: {invoice.client_dni}")
        with col2:
            st.markdown(f"**{format_display_date(invoice.invoice_date)}**")
            st.markdown(f"### {format_currency(invoice.total_amount, config.currency_symbol)}")

        col1, col2 = st.columns(2)
        with col1:
            st.markdown("**Client Details (from invoice)**")
            st.text(invoice.client_details or "N/A")
        with col2:
            st.markdown("**Company Details**")
            st.text(invoice.company_details or "N/A")

        st.markdown(f"**Items ({len(invoice.items)})**")
        if invoice.items:
            st.markdown("\n".join(f"- {item}" for item in invoice.items))
        else:
            st.caption("No items listed.")

        if invoice.should_add_category and invoice.category_details:
            st.markdown(f"**Category:** {invoice.category_details}")

        st.caption(f"{invoice.file_name} · Uploaded: {format_upload_timestamp(invoice.upload_date)}")


def render_reports_page(state: MutableMapping, invoice_store: InvoiceStore, config: AppConfig):
    """Render the filter form and, after a search, the results."""
    invoice_filter = render_filter_form()
    if invoice_filter is not None:
        state["report_filter"] = invoice_filter
        state["report_results"] = invoice_store.get_filtered_invoices(
            invoice_filter.dni,
            invoice_filter.start_date,
            invoice_filter.end_date,
        )
        logger.info(f"Report for DNI {invoice_filter.dni}: {len(state['report_results'])} invoice(s)")

    results = state.get("report_results")
    if results is None:
        return

    st.divider()

    if not results:
        st.info("No invoices found. No invoices match your current filter criteria. Try adjusting your search.")
        return

    total = sum(inv.total_amount for inv in results)
    col1, col2 = st.columns([3, 1])
    with col1:
        st.markdown(f"**{len(results)}** invoice(s), total {format_currency(total, config.currency_symbol)}")
    with col2:
        dni = state["report_filter"].dni
        st.download_button(
            "⬇️ Export to Excel",
            data=ExcelExporter(config.excel_currency_format).to_bytes(results),
            file_name=f"invoices_{dni}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
        )

    for invoice in results:
        render_invoice_item(invoice, config)
