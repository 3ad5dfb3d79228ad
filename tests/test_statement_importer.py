from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backend.repositories.import_hashes_repository import InMemoryImportHashStore
from backend.services.statement_import.errors import BankDetectionError, StatementParseError
from backend.services.statement_import.import_hash import generate_import_hash, import_hash_key
from backend.services.statement_import.importer import StatementImportService, bank_import_tags
from shared.models import BankId, DetectionConfidence, LedgerTransactionType
from tests.fakes import (
    BANK_ACCOUNTS,
    IMAGINBANK_CSV,
    FailingHashStore,
    FakeLedgerClient,
    bbva_rows,
    build_xlsx,
)


def _service(
    ledger: FakeLedgerClient | None = None,
    store=None,
) -> tuple[StatementImportService, FakeLedgerClient, InMemoryImportHashStore]:
    ledger = ledger or FakeLedgerClient()
    store = store if store is not None else InMemoryImportHashStore()
    service = StatementImportService(
        ledger_client=ledger,
        hash_store=store,
        bank_accounts=BANK_ACCOUNTS,
        hash_ttl_seconds=3600,
        lookup_concurrency=4,
    )
    return service, ledger, store


def test_import_creates_every_new_transaction() -> None:
    service, ledger, store = _service()

    result = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    assert result.bank == BankId.IMAGINBANK
    assert result.bank_name == "ImaginBank"
    assert result.confidence == DetectionConfidence.HIGH
    assert result.total_parsed == 3
    assert result.created == 3
    assert result.duplicates == 0
    assert result.errors == []
    assert len(ledger.requests) == 3
    assert len(store) == 3


def test_reimport_of_same_file_creates_nothing() -> None:
    service, ledger, _ = _service()
    service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    second = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    assert second.created == 0
    assert second.duplicates == 3
    assert ledger.calls == 3


def test_hashes_are_scoped_per_chat() -> None:
    service, ledger, _ = _service()
    service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    other = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="43")

    assert other.created == 3
    assert ledger.calls == 6


def test_failed_row_is_reported_and_retried_on_next_import() -> None:
    service, ledger, store = _service(ledger=FakeLedgerClient(fail_on_calls={2}))

    first = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    assert first.created == 2
    assert len(first.errors) == 1
    assert first.errors[0].row == 2
    assert first.errors[0].description == "Nomina Marzo"
    assert "422" in first.errors[0].error
    failed_hash = generate_import_hash("42", BankId.IMAGINBANK, date(2026, 3, 1), Decimal("1500.00"), "Nomina Marzo")
    assert store.get(import_hash_key(failed_hash)) is None

    second = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    assert second.created == 1
    assert second.duplicates == 2
    assert second.errors == []


def test_duplicate_rows_within_one_file_are_created_once() -> None:
    content = (
        b"Concepto;Fecha;Importe;Saldo\n"
        b"Cafe;01/03/2026;-2,50EUR;10,00EUR\n"
        b"Cafe;01/03/2026;-2,50EUR;7,50EUR\n"
    )
    service, ledger, _ = _service()

    result = service.import_statement(content, "export.csv", chat_id="42")

    assert result.total_parsed == 2
    assert result.created == 1
    assert result.duplicates == 1
    assert ledger.calls == 1


def test_undetectable_file_raises_detection_error() -> None:
    service, ledger, _ = _service()

    with pytest.raises(BankDetectionError, match='Could not detect bank from file "notes.txt"'):
        service.import_statement(b"hello", "notes.txt", chat_id="42")

    assert ledger.calls == 0


def test_unparseable_file_raises_parse_error() -> None:
    service, ledger, _ = _service()

    with pytest.raises(StatementParseError, match="Failed to parse ImaginBank file"):
        service.import_statement(b"IBAN;ES00\nnothing else\n", "export.csv", chat_id="42")

    assert ledger.calls == 0


def test_statement_without_rows_returns_empty_result() -> None:
    service, ledger, _ = _service()

    result = service.import_statement(b"Concepto;Fecha;Importe\n", "export.csv", chat_id="42")

    assert result.total_parsed == 0
    assert result.created == 0
    assert result.errors == []
    assert ledger.calls == 0


def test_dry_run_counts_without_writing() -> None:
    service, ledger, store = _service()

    result = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42", dry_run=True)

    assert result.dry_run is True
    assert result.created == 3
    assert ledger.calls == 0
    assert len(store) == 0


def test_hash_store_write_failure_keeps_created_count() -> None:
    service, ledger, _ = _service(store=FailingHashStore())

    result = service.import_statement(IMAGINBANK_CSV, "movimientos.csv", chat_id="42")

    assert result.created == 3
    assert ledger.calls == 3
    assert [error.row for error in result.errors] == [1, 2, 3]
    assert all("duplicate protection was not saved" in error.error for error in result.errors)


def test_ledger_requests_follow_amount_direction() -> None:
    service, ledger, _ = _service()

    service.import_statement(build_xlsx(bbva_rows()), "report.xlsx", chat_id="42")

    withdrawal, deposit = ledger.requests
    assert withdrawal.type == LedgerTransactionType.WITHDRAWAL
    assert withdrawal.amount == Decimal("23.4")
    assert withdrawal.source_account_id == "9"
    assert withdrawal.destination_account_id is None
    assert withdrawal.destination_name == "Mercadona"
    assert withdrawal.notes == "Pago con tarjeta - Compra 1234"
    assert withdrawal.tags == ["bank-import", "import-bbva"]

    assert deposit.type == LedgerTransactionType.DEPOSIT
    assert deposit.amount == Decimal("1500")
    assert deposit.source_account_id is None
    assert deposit.destination_account_id == "9"
    assert deposit.destination_name is None
    assert deposit.date == date(2026, 3, 4)


def test_bank_import_tags() -> None:
    assert bank_import_tags(BankId.CAIXABANK) == ["bank-import", "import-caixabank"]
