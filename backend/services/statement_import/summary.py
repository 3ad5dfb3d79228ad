"""User-facing import summaries (Spanish and English)."""

from __future__ import annotations

from shared.models import ImportResult


MAX_ERRORS_SHOWN = 5
_ERROR_DESCRIPTION_LENGTH = 30

_MESSAGES: dict[str, dict[str, str]] = {
    "es": {
        "title": "📥 Importación de {bank_name}",
        "parsed": "Transacciones encontradas: {count}",
        "created": "✅ Creadas: {count}",
        "would_create": "🧪 Se crearían: {count}",
        "duplicates": "⏭️ Duplicadas (omitidas): {count}",
        "skipped": "⚠️ Filas ilegibles (ignoradas): {count}",
        "errors": "❌ Errores: {count}",
        "error_details": "Detalles de errores:",
        "error_row": "• Fila {row}: {description}... - {error}",
        "more_errors": "... y {count} errores más",
        "no_transactions": "No se encontraron transacciones en el archivo.",
        "dry_run": "Simulación: no se ha creado ninguna transacción.",
        "failed": "❌ La importación ha fallado: {reason}",
    },
    "en": {
        "title": "📥 {bank_name} Import",
        "parsed": "Transactions found: {count}",
        "created": "✅ Created: {count}",
        "would_create": "🧪 Would create: {count}",
        "duplicates": "⏭️ Duplicates (skipped): {count}",
        "skipped": "⚠️ Unreadable rows (ignored): {count}",
        "errors": "❌ Errors: {count}",
        "error_details": "Error details:",
        "error_row": "• Row {row}: {description}... - {error}",
        "more_errors": "... and {count} more errors",
        "no_transactions": "No transactions found in the file.",
        "dry_run": "Dry run: no transactions were created.",
        "failed": "❌ Import failed: {reason}",
    },
}


def _messages(lang: str) -> dict[str, str]:
    return _MESSAGES.get((lang or "").strip().lower(), _MESSAGES["es"])


def format_import_result(result: ImportResult, lang: str = "es") -> str:
    msg = _messages(lang)
    title = msg["title"].format(bank_name=result.bank_name)

    if result.total_parsed == 0:
        return f"{title}\n\n{msg['no_transactions']}"

    lines = [
        title,
        "",
        msg["parsed"].format(count=result.total_parsed),
        msg["would_create" if result.dry_run else "created"].format(count=result.created),
        msg["duplicates"].format(count=result.duplicates),
    ]
    if result.skipped_rows:
        lines.append(msg["skipped"].format(count=result.skipped_rows))

    if result.errors:
        lines.append(msg["errors"].format(count=len(result.errors)))
        lines.append("")
        lines.append(msg["error_details"])
        for error in result.errors[:MAX_ERRORS_SHOWN]:
            lines.append(
                msg["error_row"].format(
                    row=error.row,
                    description=error.description[:_ERROR_DESCRIPTION_LENGTH],
                    error=error.error,
                )
            )
        if len(result.errors) > MAX_ERRORS_SHOWN:
            lines.append(msg["more_errors"].format(count=len(result.errors) - MAX_ERRORS_SHOWN))

    if result.dry_run:
        lines.append("")
        lines.append(msg["dry_run"])

    return "\n".join(lines)


def format_import_failure(error: Exception | str, lang: str = "es") -> str:
    return _messages(lang)["failed"].format(reason=str(error))
