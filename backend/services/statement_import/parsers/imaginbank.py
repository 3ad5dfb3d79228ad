"""ImaginBank parser for the semicolon separated CSV export.

Two metadata lines, then ``Concepto;Fecha;Importe;Saldo disponible``. Older
exports write amounts as ``-41,04EUR``, newer ones as ``-150.48``.
"""

from __future__ import annotations

from decimal import Decimal

from backend.services.statement_import.errors import StatementParseError
from backend.services.statement_import.normalizers import (
    parse_date_dmy,
    parse_decimal_amount,
    parse_european_amount,
)
from backend.services.statement_import.parsers.base import (
    HEADER_SEARCH_ROWS,
    RowOutcome,
    collect_rows,
)
from shared.models import ParsedStatement, ParsedTransaction, RowSkip


HEADER_PREFIX = "Concepto;Fecha"


def parse_imaginbank_amount(value: str) -> Decimal:
    trimmed = value.strip()
    if trimmed.upper().endswith("EUR"):
        return parse_european_amount(trimmed)
    return parse_decimal_amount(trimmed)


def _parse_line(raw_line: str, row_number: int) -> RowOutcome:
    line = raw_line.strip()
    if not line or line.startswith(";"):
        return None

    parts = line.split(";")
    if len(parts) < 3:
        return RowSkip(row=row_number, reason="fewer than 3 fields")

    concept, raw_date, raw_amount = parts[0], parts[1].strip(), parts[2].strip()
    if not concept.strip() or not raw_date or not raw_amount:
        return RowSkip(row=row_number, reason="missing concept, date or amount")

    try:
        parsed_date = parse_date_dmy(raw_date)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid date {raw_date!r}")

    try:
        amount = parse_imaginbank_amount(raw_amount)
    except ValueError:
        return RowSkip(row=row_number, reason=f"invalid amount {raw_amount!r}")

    return ParsedTransaction(date=parsed_date, description=concept, amount=amount)


def parse_imaginbank_statement(content: bytes, filename: str) -> ParsedStatement:
    lines = content.decode("utf-8-sig", errors="replace").splitlines()

    header_index = next(
        (
            index
            for index, line in enumerate(lines[:HEADER_SEARCH_ROWS])
            if line.startswith(HEADER_PREFIX)
        ),
        None,
    )
    if header_index is None:
        raise StatementParseError("Could not find ImaginBank header row")

    return collect_rows(
        "imaginbank",
        (_parse_line(lines[index], index + 1) for index in range(header_index + 1, len(lines))),
    )
