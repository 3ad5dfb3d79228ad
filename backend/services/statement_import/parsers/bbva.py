"""BBVA parser for the "Informe BBVA" spreadsheet export.

Layout: a few report title rows, then a header row starting at column B with
F.Valor, Fecha, Concepto, Movimiento, Importe, Divisa, Disponible, Divisa,
Observaciones.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from backend.services.statement_import.errors import StatementParseError
from backend.services.statement_import.normalizers import coerce_amount
from backend.services.statement_import.parsers.base import (
    HEADER_SEARCH_ROWS,
    RowOutcome,
    cell,
    cell_date,
    cell_text,
    collect_rows,
)
from backend.services.statement_import.spreadsheet import read_grid
from shared.models import ParsedStatement, ParsedTransaction, RowSkip


HEADER_MARKER = "F.Valor"

# Offsets relative to the F.Valor column.
_DATE = 0
_CONCEPT = 2
_MOVEMENT = 3
_AMOUNT = 4
_OBSERVATIONS = 8


def _find_header(rows: Sequence[Sequence[object]]) -> tuple[int, int] | None:
    for row_index, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
        for column_index, value in enumerate(row[:10]):
            if HEADER_MARKER in str(value):
                return row_index, column_index
    return None


def _parse_row(row: Sequence[object], row_number: int, offset: int) -> RowOutcome:
    raw_date = cell(row, offset + _DATE)
    if str(raw_date).strip() == "":
        return None

    try:
        parsed_date = cell_date(raw_date, allow_serial=False)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid date {raw_date!r}")

    raw_amount = cell(row, offset + _AMOUNT)
    try:
        amount = coerce_amount(raw_amount)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid amount {raw_amount!r}")

    notes = " - ".join(
        part
        for part in (cell_text(row, offset + _MOVEMENT), cell_text(row, offset + _OBSERVATIONS))
        if part
    )
    return ParsedTransaction(
        date=parsed_date,
        description=cell_text(row, offset + _CONCEPT),
        amount=amount,
        notes=notes or None,
    )


def parse_bbva_statement(content: bytes, filename: str) -> ParsedStatement:
    grid = read_grid(content, filename)
    header = _find_header(grid.rows)
    if header is None:
        raise StatementParseError("Could not find BBVA header row")
    header_index, offset = header

    def _outcomes() -> Iterator[RowOutcome]:
        for index in range(header_index + 1, len(grid.rows)):
            yield _parse_row(grid.rows[index], index + 1, offset)

    return collect_rows("bbva", _outcomes())
