"""
Excel export module for invoice reports.

Handles:
- Writing filtered stored invoices to an Excel workbook
- Currency formatting of totals
- In-memory export for download buttons
"""

import logging
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from invoiceai.config import get_config
from invoiceai.models.invoice import StoredInvoice

logger = logging.getLogger(__name__)


class ExcelExporter:
    """
    Exports stored invoices to Excel, one row per invoice.

    Features:
    - Styled, frozen header row
    - Currency format on the total column
    - Alternating row colors
    """

    # (row key, header, column width)
    COLUMNS = [
        ("invoice_number", "Invoice Number", 16),
        ("invoice_date", "Invoice Date", 18),
        ("raw_invoice_date", "Date (as extracted)", 16),
        ("client_dni", "Client DNI", 12),
        ("client_details", "Client Details", 35),
        ("company_details", "Company Details", 35),
        ("items", "Items", 45),
        ("item_count", "Item Count", 10),
        ("total_amount", "Total Amount", 14),
        ("category_details", "Category", 20),
        ("file_name", "File Name", 30),
        ("upload_date", "Uploaded At", 26),
    ]

    def __init__(self, currency_format: Optional[str] = None):
        """Currency format defaults to the configured Excel format."""
        self.currency_format = currency_format or get_config().excel_currency_format
        self._setup_styles()

    def _setup_styles(self):
        """Header, border and zebra-stripe styles."""
        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
        self.header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        self.wrap_alignment = Alignment(vertical="top", wrap_text=True)

        thin_border = Side(style="thin", color="CCCCCC")
        self.cell_border = Border(
            left=thin_border,
            right=thin_border,
            top=thin_border,
            bottom=thin_border,
        )

        self.even_row_fill = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

    def build_workbook(self, invoices: Iterable[StoredInvoice]) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = "Invoices"
        self._write_headers(ws)

        row_num = 1
        for row_num, invoice in enumerate(invoices, start=2):
            self._write_row(ws, row_num, invoice.to_excel_row())

        for col, (_, _, width) in enumerate(self.COLUMNS, start=1):
            ws.column_dimensions[ws.cell(row=1, column=col).column_letter].width = width

        logger.info(f"Built workbook with {row_num - 1} invoice rows")
        return wb

    def export(
        self,
        invoices: Iterable[StoredInvoice],
        file_path: Union[str, Path],
    ) -> Path:
        """
        Export invoices to an Excel file, replacing it if it exists.

        Args:
            invoices: Stored invoices, typically a filtered report
            file_path: Path to Excel file

        Returns:
            Path to the exported file
        """
        file_path = Path(file_path)
        if file_path.suffix.lower() != ".xlsx":
            file_path = file_path.with_suffix(".xlsx")

        wb = self.build_workbook(invoices)
        wb.save(file_path)
        logger.info(f"Exported invoices to {file_path}")
        return file_path

    def to_bytes(self, invoices: Iterable[StoredInvoice]) -> bytes:
        """Export invoices to an in-memory .xlsx document."""
        buffer = BytesIO()
        self.build_workbook(invoices).save(buffer)
        return buffer.getvalue()

    def _write_headers(self, ws):
        """Styled header row, frozen below."""
        for col, (_, header, _) in enumerate(self.COLUMNS, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.header_alignment
            cell.border = self.cell_border

        ws.freeze_panes = "A2"

    def _write_row(self, ws, row_num: int, row_data: dict):
        """Write one invoice row in COLUMNS order."""
        for col, (key, _, _) in enumerate(self.COLUMNS, start=1):
            value = row_data.get(key)
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = self.cell_border
            cell.alignment = self.wrap_alignment

            if key == "total_amount" and value is not None:
                cell.number_format = self.currency_format

            if row_num % 2 == 0:
                cell.fill = self.even_row_fill
