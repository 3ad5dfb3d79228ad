"""Date and amount normalization for Spanish bank exports."""

from __future__ import annotations

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from numbers import Real


# Spreadsheet serial 0 is 1899-12-30, i.e. 25569 days before the Unix epoch.
_EXCEL_EPOCH_OFFSET_DAYS = 25569
_UNIX_EPOCH = date(1970, 1, 1)
_EUR_SUFFIX = re.compile(r"eur$", flags=re.IGNORECASE)


def parse_date_dmy(value: str) -> str:
    """Convert ``DD/MM/YYYY`` (zero padding optional) into ``YYYY-MM-DD``."""

    parts = str(value).strip().split("/")
    if len(parts) < 3:
        raise ValueError(f"Invalid DD/MM/YYYY date: {value!r}")
    day, month, year = (part.strip() for part in parts[:3])
    if not (day.isdigit() and month.isdigit() and year.isdigit()):
        raise ValueError(f"Invalid DD/MM/YYYY date: {value!r}")
    return date(int(year), int(month), int(day)).isoformat()


def excel_serial_to_iso(serial: float) -> str:
    """Convert a spreadsheet date serial into ``YYYY-MM-DD``.

    The serial is treated purely as a day count; any time fraction is dropped.
    """

    try:
        days = int(serial // 1) - _EXCEL_EPOCH_OFFSET_DAYS
        return (_UNIX_EPOCH + timedelta(days=days)).isoformat()
    except (OverflowError, ValueError) as exc:
        raise ValueError(f"Invalid spreadsheet date serial: {serial!r}") from exc


def parse_decimal_amount(value: str) -> Decimal:
    """Parse plain decimal notation such as ``-150.48``."""

    text = str(value).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def parse_european_amount(value: str) -> Decimal:
    """Parse ``1.234,56`` or ``-41,04EUR`` style amounts."""

    cleaned = _EUR_SUFFIX.sub("", str(value).strip()).strip()
    cleaned = cleaned.replace(".", "").replace(",", ".")
    return parse_decimal_amount(cleaned)


def coerce_amount(value: object) -> Decimal:
    """Return the amount held by a spreadsheet cell, numeric or textual."""

    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Real):
        return parse_decimal_amount(str(value))

    text = str(value).strip()
    if "," in text or _EUR_SUFFIX.search(text):
        return parse_european_amount(text)
    return parse_decimal_amount(text)
