"""CaixaBank parser for the "Movimientos_cuenta" spreadsheet export.

Columns: Fecha, Fecha valor, Movimiento, Más datos, Importe, Saldo. Dates are
spreadsheet serial numbers in the native export.
"""

from __future__ import annotations

from collections.abc import Sequence

from backend.services.statement_import.errors import StatementParseError
from backend.services.statement_import.normalizers import coerce_amount
from backend.services.statement_import.parsers.base import (
    RowOutcome,
    cell,
    cell_date,
    cell_text,
    collect_rows,
    find_header_row,
)
from backend.services.statement_import.spreadsheet import read_grid
from shared.models import ParsedStatement, ParsedTransaction, RowSkip


_DATE = 0
_MOVEMENT = 2
_MORE_DATA = 3
_AMOUNT = 4


def _is_header(row: Sequence[object]) -> bool:
    return cell_text(row, _DATE) == "Fecha" and cell_text(row, _MOVEMENT) == "Movimiento"


def _parse_row(row: Sequence[object], row_number: int) -> RowOutcome:
    raw_date = cell(row, _DATE)
    if str(raw_date).strip() == "":
        return None

    try:
        parsed_date = cell_date(raw_date, allow_serial=True)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid date {raw_date!r}")

    raw_amount = cell(row, _AMOUNT)
    try:
        amount = coerce_amount(raw_amount)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid amount {raw_amount!r}")

    return ParsedTransaction(
        date=parsed_date,
        description=cell_text(row, _MOVEMENT),
        amount=amount,
        notes=cell_text(row, _MORE_DATA) or None,
    )


def parse_caixabank_statement(content: bytes, filename: str) -> ParsedStatement:
    grid = read_grid(content, filename)
    header_index = find_header_row(grid.rows, _is_header)
    if header_index is None:
        raise StatementParseError("Could not find CaixaBank header row")

    return collect_rows(
        "caixabank",
        (
            _parse_row(grid.rows[index], index + 1)
            for index in range(header_index + 1, len(grid.rows))
        ),
    )
