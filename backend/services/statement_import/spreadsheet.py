"""Read the first sheet of a statement export into a grid of cell values."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

import pandas as pd


@dataclass(slots=True)
class SheetGrid:
    sheet_name: str
    rows: list[list[object]] = field(default_factory=list)


def is_csv_filename(filename: str) -> bool:
    return filename.lower().endswith(".csv")


def _read_csv_grid(content: bytes, max_rows: int | None) -> SheetGrid:
    text = content.decode("utf-8-sig", errors="ignore")
    buffer = io.StringIO(text)
    try:
        dialect = csv.Sniffer().sniff(buffer.read(2048), delimiters=",;\t")
        buffer.seek(0)
    except csv.Error:
        buffer.seek(0)
        dialect = csv.excel

    rows: list[list[object]] = []
    for row in csv.reader(buffer, dialect=dialect):
        if max_rows is not None and len(rows) >= max_rows:
            break
        rows.append([cell.strip() for cell in row])
    return SheetGrid(sheet_name="", rows=rows)


def read_grid(content: bytes, filename: str, *, max_rows: int | None = None) -> SheetGrid:
    """Return the first sheet of ``content`` with empty cells as ``""``.

    Numeric cells keep their numeric type and date-formatted cells come back as
    timestamps, so callers decide how to interpret each column.
    """

    if is_csv_filename(filename):
        return _read_csv_grid(content, max_rows)

    with pd.ExcelFile(io.BytesIO(content)) as workbook:
        if not workbook.sheet_names:
            raise ValueError("Workbook has no sheets")
        sheet_name = str(workbook.sheet_names[0])
        frame = workbook.parse(sheet_name, header=None, nrows=max_rows, dtype=object)

    frame = frame.astype(object).where(frame.notna(), "")
    return SheetGrid(sheet_name=sheet_name, rows=frame.values.tolist())
