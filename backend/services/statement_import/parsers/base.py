"""Helpers shared by the per-bank statement parsers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime
from numbers import Real
from typing import Protocol, Union

from backend.services.statement_import.normalizers import excel_serial_to_iso, parse_date_dmy
from shared.models import ParsedStatement, ParsedTransaction, RowSkip


logger = logging.getLogger(__name__)

HEADER_SEARCH_ROWS = 10

# ``None`` marks a blank row, which is ignored without being reported.
RowOutcome = Union[ParsedTransaction, RowSkip, None]


class StatementParser(Protocol):
    def __call__(self, content: bytes, filename: str) -> ParsedStatement:
        """Extract canonical transactions, raising StatementParseError on structural failure."""


def cell(row: Sequence[object], index: int) -> object:
    if index < 0 or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else value


def cell_text(row: Sequence[object], index: int) -> str:
    return str(cell(row, index)).strip()


def cell_date(value: object, *, allow_serial: bool) -> str:
    """Return an ISO date from a DD/MM/YYYY string, a date cell or a serial number."""

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if allow_serial and isinstance(value, Real) and not isinstance(value, bool):
        return excel_serial_to_iso(float(value))
    return parse_date_dmy(str(value))


def find_header_row(
    rows: Sequence[Sequence[object]],
    matches: Callable[[Sequence[object]], bool],
) -> int | None:
    for index, row in enumerate(rows[:HEADER_SEARCH_ROWS]):
        if row and matches(row):
            return index
    return None


def collect_rows(bank_label: str, outcomes: Iterable[RowOutcome]) -> ParsedStatement:
    statement = ParsedStatement()
    for outcome in outcomes:
        if outcome is None:
            continue
        if isinstance(outcome, RowSkip):
            statement.skipped.append(outcome)
            logger.debug(
                "statement_row_skipped bank=%s row=%s reason=%s",
                bank_label,
                outcome.row,
                outcome.reason,
            )
            continue
        statement.transactions.append(outcome)

    if statement.skipped:
        logger.info(
            "statement_rows_skipped bank=%s skipped=%s parsed=%s",
            bank_label,
            len(statement.skipped),
            len(statement.transactions),
        )
    return statement
