"""Deterministic bank detection from file name and first rows of content."""

from __future__ import annotations

import logging

from backend.services.statement_import.spreadsheet import read_grid
from shared.models import BankDetection, BankId, DetectionConfidence


logger = logging.getLogger(__name__)


BANK_DISPLAY_NAMES: dict[BankId, str] = {
    BankId.BBVA: "BBVA",
    BankId.CAIXABANK: "CaixaBank",
    BankId.IMAGINBANK: "ImaginBank",
}

SUPPORTED_FORMATS = "BBVA (.xlsx), CaixaBank (.xls), ImaginBank (.csv)"

_CSV_SAMPLE_LINES = 5
_SPREADSHEET_SAMPLE_ROWS = 10
_SPREADSHEET_SAMPLE_COLUMNS = 10

# First matching literal wins; order matters because ImaginBank exports
# mention CaixaBank in their metadata lines.
_CSV_SIGNATURES: tuple[tuple[str, BankId], ...] = (
    ("IBAN;", BankId.IMAGINBANK),
    ("CaixaBank", BankId.IMAGINBANK),
    ("Concepto;Fecha", BankId.IMAGINBANK),
    ("Fecha,Fecha valor,Movimiento", BankId.CAIXABANK),
    ("F.Valor,Fecha,Concepto", BankId.BBVA),
)


def bank_display_name(bank: BankId) -> str:
    return BANK_DISPLAY_NAMES[bank]


def _extension(filename: str) -> str:
    name = filename.lower()
    return name.rsplit(".", 1)[-1] if "." in name else ""


def _high(bank: BankId) -> BankDetection:
    return BankDetection(bank=bank, confidence=DetectionConfidence.HIGH)


def _medium(bank: BankId) -> BankDetection:
    return BankDetection(bank=bank, confidence=DetectionConfidence.MEDIUM)


def _detect_from_csv(content: bytes) -> BankDetection | None:
    text = content.decode("utf-8", errors="ignore")
    sample = "\n".join(text.splitlines()[:_CSV_SAMPLE_LINES])
    for literal, bank in _CSV_SIGNATURES:
        if literal in sample:
            return _high(bank)
    return None


def _detect_from_spreadsheet(content: bytes, filename: str) -> BankDetection | None:
    grid = read_grid(content, filename, max_rows=_SPREADSHEET_SAMPLE_ROWS)
    sheet_name = grid.sheet_name
    flat_content = " ".join(
        str(cell) for row in grid.rows for cell in row[:_SPREADSHEET_SAMPLE_COLUMNS]
    )

    if (
        "Informe BBVA" in sheet_name
        or "Últimos movimientos" in flat_content
        or "F.Valor" in flat_content
    ):
        return _high(BankId.BBVA)

    if (
        sheet_name.startswith("Movimientos_cuenta")
        or "Movimientos de la cuenta" in flat_content
        or ("Fecha valor" in flat_content and "Movimiento" in flat_content)
    ):
        return _high(BankId.CAIXABANK)

    lower_name = filename.lower()
    if "movimientos" in lower_name and "bbva" in lower_name:
        return _medium(BankId.BBVA)
    if "movimientos_cuenta" in lower_name:
        return _medium(BankId.CAIXABANK)
    return None


def _detect_from_filename(filename: str) -> BankDetection | None:
    name = filename.lower()

    if (
        "últimos movimientos" in name
        or "ultimos movimientos" in name
        or ("bbva" in name and "movimiento" in name)
    ):
        return _medium(BankId.BBVA)

    if "movimientos_cuenta" in name:
        return _medium(BankId.CAIXABANK)

    if "caixabank" in name or "imaginbank" in name or "caixabanknow" in name:
        return _medium(BankId.IMAGINBANK)

    return None


def detect_bank(content: bytes, filename: str) -> BankDetection | None:
    """Return the bank that produced ``content``, or ``None`` when unknown.

    Content heuristics come first because file names are user controlled;
    the file name is only used to rescue exports the content checks miss.
    Never raises.
    """

    extension = _extension(filename)

    if extension == "csv":
        detection = _detect_from_csv(content)
        if detection is not None:
            return detection

    elif extension in {"xlsx", "xls"}:
        try:
            detection = _detect_from_spreadsheet(content, filename)
        except Exception:
            logger.exception("bank_detection_spreadsheet_failed filename=%s", filename)
        else:
            if detection is not None:
                return detection

    return _detect_from_filename(filename)
