from backend.services.statement_import.summary import (
    MAX_ERRORS_SHOWN,
    format_import_failure,
    format_import_result,
)
from shared.models import BankId, ImportResult, ImportRowError


def _result(**overrides) -> ImportResult:
    values = {
        "bank": BankId.BBVA,
        "bank_name": "BBVA",
        "total_parsed": 10,
        "created": 7,
        "duplicates": 3,
    }
    values.update(overrides)
    return ImportResult(**values)


def test_format_import_result_spanish_counts() -> None:
    message = format_import_result(_result())

    assert message.splitlines()[0] == "📥 Importación de BBVA"
    assert "Transacciones encontradas: 10" in message
    assert "✅ Creadas: 7" in message
    assert "⏭️ Duplicadas (omitidas): 3" in message
    assert "Errores" not in message


def test_format_import_result_english() -> None:
    message = format_import_result(_result(skipped_rows=2), lang="en")

    assert message.splitlines()[0] == "📥 BBVA Import"
    assert "✅ Created: 7" in message
    assert "⚠️ Unreadable rows (ignored): 2" in message


def test_format_import_result_unknown_language_falls_back_to_spanish() -> None:
    assert "Creadas" in format_import_result(_result(), lang="de")


def test_format_import_result_empty_statement() -> None:
    message = format_import_result(_result(total_parsed=0, created=0, duplicates=0), lang="en")

    assert message == "📥 BBVA Import\n\nNo transactions found in the file."


def test_format_import_result_truncates_error_list() -> None:
    errors = [
        ImportRowError(row=index, description="A very long description that keeps going", error="boom")
        for index in range(1, 9)
    ]

    message = format_import_result(_result(created=0, errors=errors), lang="en")

    assert "❌ Errors: 8" in message
    assert message.count("• Row") == MAX_ERRORS_SHOWN
    assert "• Row 1: A very long description that k... - boom" in message
    assert "• Row 6" not in message
    assert "... and 3 more errors" in message


def test_format_import_result_dry_run() -> None:
    message = format_import_result(_result(dry_run=True), lang="en")

    assert "🧪 Would create: 7" in message
    assert message.endswith("Dry run: no transactions were created.")


def test_format_import_failure() -> None:
    assert format_import_failure(ValueError("bad file")) == "❌ La importación ha fallado: bad file"
    assert format_import_failure("bad file", lang="en") == "❌ Import failed: bad file"
