"""
Export service for the per-country analytics matrix.
"""
import csv
from io import BytesIO, StringIO
from typing import Dict, List

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font

HEADERS = [
    "Country",
    "Total Leads",
    "Qualified",
    "Not Qualified",
    "Success Rate %",
]


def _rows(country_matrix: List[Dict]) -> List[List]:
    return [
        [
            row["country"],
            row["total"],
            row["qualified"],
            row["not_qualified"],
            row["success_rate"],
        ]
        for row in country_matrix
    ]


def export_country_matrix(country_matrix: List[Dict], format: str = "csv") -> StreamingResponse:
    """Export the country matrix in the specified format."""
    if format == "csv":
        return _export_csv(country_matrix)
    elif format == "excel":
        return _export_excel(country_matrix)
    else:
        raise ValueError(f"Unsupported format: {format}")


def _export_csv(country_matrix: List[Dict]) -> StreamingResponse:
    """Export the matrix as CSV."""
    text = StringIO()
    writer = csv.writer(text)
    writer.writerow(HEADERS)
    writer.writerows(_rows(country_matrix))

    output = BytesIO(text.getvalue().encode("utf-8"))
    return StreamingResponse(
        output,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=country_report.csv"}
    )


def _export_excel(country_matrix: List[Dict]) -> StreamingResponse:
    """Export the matrix as an Excel workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Countries"

    for col, header in enumerate(HEADERS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")

    for row_idx, row in enumerate(_rows(country_matrix), 2):
        for col, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col, value=value)

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=country_report.xlsx"}
    )
