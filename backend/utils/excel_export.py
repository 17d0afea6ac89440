import enum
from io import BytesIO
from typing import Dict, List

import pandas as pd
from fastapi.responses import StreamingResponse
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")


def _style_sheet(ws):
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    for column_cells in ws.columns:
        width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
        ws.column_dimensions[get_column_letter(column_cells[0].column)].width = min(width + 2, 50)


def _cell(value):
    return value.value if isinstance(value, enum.Enum) else value


def build_workbook(sheets: Dict[str, List[dict]]) -> BytesIO:
    """One sheet per entry; each row dict becomes a spreadsheet row."""
    excel_file = BytesIO()
    with pd.ExcelWriter(excel_file, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame([{key: _cell(value) for key, value in row.items()} for row in rows])
            df.to_excel(writer, index=False, sheet_name=sheet_name[:31])
            _style_sheet(writer.sheets[sheet_name[:31]])
    excel_file.seek(0)
    return excel_file


def xlsx_response(sheets: Dict[str, List[dict]], filename: str) -> StreamingResponse:
    headers = {
        'Content-Disposition': f'attachment; filename="{filename}"'
    }
    return StreamingResponse(build_workbook(sheets), media_type=XLSX_MEDIA_TYPE, headers=headers)
