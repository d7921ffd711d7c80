"""Tests for the Excel report export."""

from io import BytesIO

from openpyxl import load_workbook

from invoiceai.export import ExcelExporter


def test_to_bytes_writes_one_row_per_invoice(make_stored_invoice):
    invoices = [make_stored_invoice(number="F-1"), make_stored_invoice("2024-02-10", number="F-2")]

    data = ExcelExporter(currency_format='"$"#,##0.00').to_bytes(invoices)

    ws = load_workbook(BytesIO(data)).active
    assert ws.title == "Invoices"
    assert ws.max_row == 3
    headers = [cell.value for cell in ws[1]]
    assert headers[0] == "Invoice Number"
    assert "Total Amount" in headers

    total_col = headers.index("Total Amount") + 1
    total = ws.cell(row=2, column=total_col)
    assert total.value == 176.06
    assert total.number_format == '"$"#,##0.00'
    assert ws.cell(row=3, column=1).value == "F-2"
    assert ws.freeze_panes == "A2"


def test_empty_report_has_header_only():
    ws = load_workbook(BytesIO(ExcelExporter(currency_format="0.00").to_bytes([]))).active
    assert ws.max_row == 1


def test_export_forces_xlsx_suffix(tmp_path, make_stored_invoice):
    path = ExcelExporter(currency_format="0.00").export([make_stored_invoice()], tmp_path / "report.csv")

    assert path == tmp_path / "report.xlsx"
    assert path.exists()
    ws = load_workbook(path).active
    assert ws.cell(row=2, column=4).value == "12345678A"
