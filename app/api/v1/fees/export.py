"""Dues report and student statement exports: CSV, Excel (openpyxl) and PDF (reportlab)."""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.config import settings

from .schemas import DuesSummary, StudentFinancialRecord

CSV_HEADERS = (
    "Student Name",
    "Admission Number",
    "Batch",
    "Total Fees",
    "Paid Amount",
    "Balance",
    "Last Payment Date",
    "Days Past Due",
    "Status",
)
DUES_SHEET_NAME = "Dues"


def format_date(value: Optional[date], fmt: Optional[str] = None) -> str:
    if value is None:
        return ""
    return value.strftime(fmt or settings.report_date_format)


def _dues_row(record: DuesSummary, date_format: Optional[str]) -> list:
    return [
        record.student_name,
        record.admission_number,
        record.batch_name,
        record.total_fees,
        record.paid_amount,
        record.balance,
        format_date(record.last_payment_date, date_format),
        record.days_past_due if record.days_past_due is not None else "",
        record.status.value,
    ]


def export_csv(rows: Iterable[DuesSummary], date_format: Optional[str] = None) -> bytes:
    """UTF-8 CSV: header row, then one row per student. Text fields quoted, numbers raw."""
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(CSV_HEADERS)
    # Decimal and int count as numbers for QUOTE_NONNUMERIC, so only text gets quoted.
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for record in rows:
        writer.writerow(_dues_row(record, date_format))
    return buf.getvalue().encode("utf-8")


def export_excel(rows: Iterable[DuesSummary], date_format: Optional[str] = None) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = DUES_SHEET_NAME
    ws.append(list(CSV_HEADERS))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for record in rows:
        ws.append(_dues_row(record, date_format))
    for column in ("D", "E", "F"):
        for cell in ws[column][1:]:
            cell.number_format = "#,##0.00"
    ws.freeze_panes = "A2"

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _table(data: List[list], header_bg: str = "#4338ca") -> Table:
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_bg)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#e2e8f0")),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#eef2ff")]),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return table


def export_pdf(
    rows: Iterable[DuesSummary],
    title: Optional[str] = None,
    date_format: Optional[str] = None,
) -> bytes:
    rows = list(rows)
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=landscape(A4),
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=title or settings.report_title,
    )
    styles = getSampleStyleSheet()

    data = [list(CSV_HEADERS)]
    for record in rows:
        data.append(
            [
                record.student_name,
                record.admission_number,
                record.batch_name,
                _money(record.total_fees),
                _money(record.paid_amount),
                _money(record.balance),
                format_date(record.last_payment_date, date_format),
                "" if record.days_past_due is None else str(record.days_past_due),
                record.status.value.upper(),
            ]
        )

    story = [
        Paragraph(escape(title or settings.report_title), styles["Title"]),
        Paragraph(f"Generated {format_date(date.today(), date_format)} - {len(rows)} students", styles["Normal"]),
        Spacer(1, 6 * mm),
        _table(data),
    ]
    doc.build(story)
    return buf.getvalue()


def export_statement_pdf(record: StudentFinancialRecord, date_format: Optional[str] = None) -> bytes:
    """Fee statement for one student: identity, totals, then the ledger with running balance."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=14 * mm,
        title=f"Fee Statement - {record.student_name}",
    )
    styles = getSampleStyleSheet()

    summary = [
        ["Student", record.student_name, "Admission No.", record.admission_number],
        ["Batch", record.batch_name, "Last Payment", format_date(record.last_payment_date, date_format)],
        ["Total Fees", _money(record.total_fees), "Paid", _money(record.paid_amount)],
        ["Balance", _money(record.balance), "Fee Structures", ", ".join(record.applied_structures)],
    ]
    summary_table = Table(summary, hAlign="LEFT")
    summary_table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
            ]
        )
    )

    ledger = [["Date", "Description", "Mode", "Receipt", "Debit", "Credit", "Balance"]]
    for entry in record.transactions:
        ledger.append(
            [
                format_date(entry.date, date_format),
                Paragraph(escape(entry.description), styles["BodyText"]),
                entry.payment_mode,
                entry.receipt_number,
                _money(entry.debit) if entry.debit else "",
                _money(entry.credit) if entry.credit else "",
                _money(entry.running_balance),
            ]
        )

    story = [
        Paragraph("Fee Statement", styles["Title"]),
        summary_table,
        Spacer(1, 6 * mm),
        _table(ledger),
    ]
    doc.build(story)
    return buf.getvalue()
