"""Bank parser routing: one parser strategy per supported bank."""

from __future__ import annotations

from backend.services.statement_import.parsers.base import StatementParser
from backend.services.statement_import.parsers.bbva import parse_bbva_statement
from backend.services.statement_import.parsers.caixabank import parse_caixabank_statement
from backend.services.statement_import.parsers.imaginbank import parse_imaginbank_statement
from shared.models import BankId, ParsedStatement


STATEMENT_PARSERS: dict[BankId, StatementParser] = {
    BankId.BBVA: parse_bbva_statement,
    BankId.CAIXABANK: parse_caixabank_statement,
    BankId.IMAGINBANK: parse_imaginbank_statement,
}


def parse_statement_file(content: bytes, filename: str, bank: BankId) -> ParsedStatement:
    parser = STATEMENT_PARSERS.get(bank)
    if parser is None:
        raise ValueError(f"Unknown bank: {bank}")
    return parser(content, filename)
