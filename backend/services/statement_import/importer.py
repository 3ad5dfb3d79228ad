"""Statement import orchestrator: detect, parse, dedupe and create ledger transactions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from backend.clients.firefly_client import LedgerClient
from backend.repositories.import_hashes_repository import ImportHashStore
from backend.services.statement_import.bank_detector import (
    SUPPORTED_FORMATS,
    bank_display_name,
    detect_bank,
)
from backend.services.statement_import.errors import BankDetectionError, StatementParseError
from backend.services.statement_import.import_hash import (
    batch_check_hashes,
    build_hash_record,
    generate_import_hash,
    store_import_hash,
)
from backend.services.statement_import.routing import parse_statement_file
from shared.models import (
    BankAccounts,
    BankId,
    ImportResult,
    ImportRowError,
    LedgerTransactionRequest,
    LedgerTransactionType,
    ParsedStatement,
    ParsedTransaction,
)


logger = logging.getLogger(__name__)


BANK_IMPORT_TAG = "bank-import"
DEFAULT_HASH_TTL_SECONDS = 365 * 24 * 60 * 60


def bank_import_tags(bank: BankId) -> list[str]:
    return [BANK_IMPORT_TAG, f"import-{bank.value}"]


@dataclass(slots=True)
class StatementImportService:
    ledger_client: LedgerClient
    hash_store: ImportHashStore
    bank_accounts: BankAccounts
    hash_ttl_seconds: int = DEFAULT_HASH_TTL_SECONDS
    lookup_concurrency: int = 16

    def _build_ledger_request(
        self,
        bank: BankId,
        transaction: ParsedTransaction,
    ) -> LedgerTransactionRequest:
        account_id = self.bank_accounts.account_for(bank)
        is_withdrawal = transaction.amount < 0
        return LedgerTransactionRequest(
            type=LedgerTransactionType.WITHDRAWAL if is_withdrawal else LedgerTransactionType.DEPOSIT,
            date=transaction.date,
            amount=abs(transaction.amount),
            description=transaction.description,
            notes=transaction.notes,
            source_account_id=account_id if is_withdrawal else None,
            destination_account_id=None if is_withdrawal else account_id,
            destination_name=transaction.description if is_withdrawal else None,
            tags=bank_import_tags(bank),
        )

    def import_statement(
        self,
        content: bytes,
        filename: str,
        *,
        chat_id: str,
        dry_run: bool = False,
    ) -> ImportResult:
        """Import one bank statement file for ``chat_id``.

        Raises ``BankDetectionError`` or ``StatementParseError`` when the file
        as a whole cannot be understood. Row-level failures are reported in the
        returned result and never abort the import.
        """

        detection = detect_bank(content, filename)
        if detection is None:
            raise BankDetectionError(
                f'Could not detect bank from file "{filename}". Supported formats: {SUPPORTED_FORMATS}'
            )

        bank = detection.bank
        bank_name = bank_display_name(bank)
        logger.info(
            "statement_import_started chat_id=%s bank=%s confidence=%s filename=%s dry_run=%s",
            chat_id,
            bank.value,
            detection.confidence.value,
            filename,
            dry_run,
        )

        try:
            statement: ParsedStatement = parse_statement_file(content, filename, bank)
        except Exception as exc:
            raise StatementParseError(f"Failed to parse {bank_name} file: {exc}") from exc

        result = ImportResult(
            bank=bank,
            bank_name=bank_name,
            confidence=detection.confidence,
            total_parsed=len(statement.transactions),
            skipped_rows=len(statement.skipped),
            dry_run=dry_run,
        )
        if not statement.transactions:
            logger.info("statement_import_empty chat_id=%s bank=%s", chat_id, bank.value)
            return result

        hashes = [
            generate_import_hash(chat_id, bank, tx.date, tx.amount, tx.description)
            for tx in statement.transactions
        ]
        already_imported = batch_check_hashes(
            self.hash_store,
            hashes,
            concurrency=self.lookup_concurrency,
        )
        seen_in_file: set[str] = set()

        for index, (transaction, import_hash) in enumerate(zip(statement.transactions, hashes), start=1):
            if import_hash in already_imported or import_hash in seen_in_file:
                result.duplicates += 1
                continue

            if dry_run:
                result.created += 1
                seen_in_file.add(import_hash)
                continue

            try:
                self.ledger_client.create_transaction(self._build_ledger_request(bank, transaction))
            except Exception as exc:
                logger.exception(
                    "statement_import_row_failed chat_id=%s bank=%s row=%s",
                    chat_id,
                    bank.value,
                    index,
                )
                result.errors.append(
                    ImportRowError(row=index, description=transaction.description, error=str(exc))
                )
                continue

            result.created += 1
            seen_in_file.add(import_hash)

            try:
                store_import_hash(
                    self.hash_store,
                    import_hash,
                    build_hash_record(
                        chat_id,
                        bank,
                        transaction.date,
                        transaction.amount,
                        transaction.description,
                    ),
                    ttl_seconds=self.hash_ttl_seconds,
                )
            except Exception as exc:
                logger.exception(
                    "statement_import_hash_store_failed chat_id=%s bank=%s row=%s",
                    chat_id,
                    bank.value,
                    index,
                )
                result.errors.append(
                    ImportRowError(
                        row=index,
                        description=transaction.description,
                        error=f"Created, but duplicate protection was not saved: {exc}",
                    )
                )

        logger.info(
            "statement_import_completed chat_id=%s bank=%s parsed=%s created=%s duplicates=%s errors=%s skipped=%s",
            chat_id,
            bank.value,
            result.total_parsed,
            result.created,
            result.duplicates,
            len(result.errors),
            result.skipped_rows,
        )
        return result
