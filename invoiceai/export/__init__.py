"""Export module for writing invoice reports to Excel spreadsheets."""

from .excel import ExcelExporter

__all__ = ["ExcelExporter"]
