"""CSV and Excel renderings of an attendance ReportData."""

from __future__ import annotations

import csv
import io

import pandas as pd

from .service import ReportData

REPORT_COLUMNS = [
    "date",
    "user_id",
    "full_name",
    "username",
    "market_name",
    "punch_in",
    "punch_out",
    "status",
    "is_late",
    "worked_hours",
]

EXCEL_HEADERS = {
    "date": "Date",
    "user_id": "Employee ID",
    "full_name": "Employee",
    "username": "Username",
    "market_name": "Market",
    "punch_in": "Punch In",
    "punch_out": "Punch Out",
    "status": "Status",
    "is_late": "Late",
    "worked_hours": "Worked Hours",
}


def report_csv_bytes(data: ReportData) -> bytes:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=REPORT_COLUMNS)
    writer.writeheader()
    for row in data.rows:
        writer.writerow(row)
    # BOM so Excel opens UTF-8 names correctly.
    return out.getvalue().encode("utf-8-sig")


def report_excel_bytes(data: ReportData) -> bytes:
    df = pd.DataFrame(data.rows, columns=REPORT_COLUMNS).rename(columns=EXCEL_HEADERS)
    summary = pd.DataFrame(data.summary, columns=["user_id", "full_name", "username", "days", "late_days", "total_hours"])

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
        summary.to_excel(writer, index=False, sheet_name="Summary")
    return output.getvalue()
