from enum import Enum


class DuesStatus(str, Enum):
    paid = "paid"
    partial = "partial"
    overdue = "overdue"


class ExportFormat(str, Enum):
    csv = "csv"
    excel = "excel"
    pdf = "pdf"
