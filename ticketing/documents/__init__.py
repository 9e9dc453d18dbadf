from ticketing.documents.event_sheet import (
    EventSheetData, build_event_sheet, event_sheet_data_for, event_sheet_filename,
)
from ticketing.documents.invoice import InvoiceData, build_invoice, invoice_data_for, invoice_filename
from ticketing.documents.render import render_pdf

__all__ = [
    "EventSheetData",
    "InvoiceData",
    "build_event_sheet",
    "build_invoice",
    "event_sheet_data_for",
    "event_sheet_filename",
    "invoice_data_for",
    "invoice_filename",
    "render_pdf",
]
