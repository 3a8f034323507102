# -*- coding: utf-8 -*-
"""
Excel export of payroll reports (openpyxl).

Sheet 1 "Summary" holds the filters and totals, sheet 2 "Payrolls" one row per
payroll. The detailed export adds one column per concept code seen in the rows.
"""
from __future__ import annotations
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from payroll.services import report_service

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MONEY_FORMAT = "#,##0.00"

HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)

BASE_COLUMNS = [
    ("Payroll #", "payroll_number", False),
    ("Employee #", "employee_number", False),
    ("Employee", "employee_name", False),
    ("Department", "department", False),
    ("Position", "position", False),
    ("Period", "period", False),
    ("Status", "status", False),
    ("Worked days", "worked_days", True),
    ("Base salary", "base_salary", True),
    ("Gross", "gross_salary", True),
    ("Deductions", "total_deductions", True),
    ("Taxes", "total_taxes", True),
    ("Net", "net_salary", True),
]

SUMMARY_LABELS = [
    ("Payrolls", "payroll_count"),
    ("Employees", "employee_count"),
    ("Total gross", "total_gross"),
    ("Total deductions", "total_deductions"),
    ("Total taxes", "total_taxes"),
    ("Total net", "total_net"),
    ("Employer contributions", "total_employer_contributions"),
    ("Average net", "average_net"),
]


def _num(v: Any) -> float:
    return float(Decimal(str(v or 0)))


def _style_header(ws) -> None:
    for cell in ws[1]:
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _autosize(ws) -> None:
    for column in ws.columns:
        width = max(len(str(c.value)) if c.value is not None else 0 for c in column)
        ws.column_dimensions[column[0].column_letter].width = min(width + 2, 50)


def _summary_sheet(ws, filters: Dict[str, Any], totals: Dict[str, Any]) -> None:
    ws.title = "Summary"
    ws["A1"] = "PAYROLL REPORT"
    ws["A1"].font = Font(size=16, bold=True)
    ws.merge_cells("A1:D1")

    row = 3
    for key, value in sorted(filters.items()):
        if value in (None, "", []):
            continue
        ws.cell(row=row, column=1, value=f"{key}:")
        ws.cell(row=row, column=2, value=str(value))
        row += 1

    row += 1
    for label, key in SUMMARY_LABELS:
        ws.cell(row=row, column=1, value=label)
        cell = ws.cell(row=row, column=2, value=_num(totals.get(key)))
        if key.startswith(("total", "average")):
            cell.number_format = MONEY_FORMAT
        row += 1
    ws.column_dimensions["A"].width = 28
    ws.column_dimensions["B"].width = 22


def _rows_sheet(ws, rows: List[Dict[str, Any]], with_concepts: bool) -> None:
    codes: List[str] = []
    if with_concepts:
        for r in rows:
            for d in r["details"]:
                if d["code"] not in codes:
                    codes.append(d["code"])

    ws.append([label for label, _, _ in BASE_COLUMNS] + codes)
    _style_header(ws)

    for r in rows:
        values = [_num(r[key]) if money else r[key] for _, key, money in BASE_COLUMNS]
        if codes:
            amounts = {d["code"]: d["amount"] for d in r["details"]}
            values += [_num(amounts.get(code)) for code in codes]
        ws.append(values)

    money_cols = [i + 1 for i, (_, _, money) in enumerate(BASE_COLUMNS) if money]
    money_cols += list(range(len(BASE_COLUMNS) + 1, len(BASE_COLUMNS) + len(codes) + 1))
    for row in ws.iter_rows(min_row=2):
        for idx in money_cols:
            row[idx - 1].number_format = MONEY_FORMAT

    _autosize(ws)
    ws.auto_filter.ref = ws.dimensions


def build_workbook(filters: Dict[str, Any], report_type: str = "summary") -> BytesIO:
    """Render the report for `filters` into an in-memory xlsx file."""
    totals = report_service.summary_report(filters)["totals"]
    rows = report_service.detailed_report(filters)["rows"]

    wb = Workbook()
    _summary_sheet(wb.active, filters, totals)
    _rows_sheet(wb.create_sheet("Payrolls"), rows, with_concepts=(report_type == "detailed"))

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer


def export_filename(report_type: str, filters: Dict[str, Any]) -> str:
    suffix = f"_period_{filters['period_id']}" if filters.get("period_id") else ""
    return f"payroll_{report_type}{suffix}.xlsx"
