"""Hash-based duplicate detection for bank statement imports.

A hash is computed from the transaction as parsed from the bank file, never
from the ledger entry it became, so later edits in the ledger do not make a
re-imported row look new. Identity keys on the amount magnitude, not its sign.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from backend.repositories.import_hashes_repository import ImportHashStore
from shared.models import BankId, ImportHashRecord


logger = logging.getLogger(__name__)


KEY_PREFIX = "import-hash:"
_DESCRIPTION_MAX_LENGTH = 50
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_CENTS = Decimal("0.01")


def normalize_description(description: str) -> str:
    text = _NON_ALPHANUMERIC.sub("", description.lower())
    return _WHITESPACE.sub(" ", text).strip()[:_DESCRIPTION_MAX_LENGTH].rstrip()


def normalize_amount(amount: Decimal | float | str) -> str:
    return str(abs(Decimal(str(amount))).quantize(_CENTS, rounding=ROUND_HALF_UP))


def _iso_date(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


def build_import_signature(
    chat_id: str,
    bank: BankId | str,
    tx_date: date | str,
    amount: Decimal | float | str,
    description: str,
) -> str:
    bank_id = bank.value if isinstance(bank, BankId) else str(bank)
    return "|".join(
        (
            str(chat_id),
            bank_id,
            _iso_date(tx_date),
            normalize_amount(amount),
            normalize_description(description),
        )
    )


def generate_import_hash(
    chat_id: str,
    bank: BankId | str,
    tx_date: date | str,
    amount: Decimal | float | str,
    description: str,
) -> str:
    """Return the sha-256 hex digest identifying one imported bank row."""

    signature = build_import_signature(chat_id, bank, tx_date, amount, description)
    return hashlib.sha256(signature.encode("utf-8")).hexdigest()


def import_hash_key(import_hash: str) -> str:
    return f"{KEY_PREFIX}{import_hash}"


def build_hash_record(
    chat_id: str,
    bank: BankId,
    tx_date: date,
    amount: Decimal,
    description: str,
) -> ImportHashRecord:
    return ImportHashRecord(
        chat_id=str(chat_id),
        bank_id=bank,
        date=tx_date,
        amount=amount,
        description=description,
        imported_at=datetime.now(timezone.utc),
    )


def hash_exists(store: ImportHashStore, import_hash: str) -> bool:
    return store.get(import_hash_key(import_hash)) is not None


def batch_check_hashes(
    store: ImportHashStore,
    hashes: Iterable[str],
    *,
    concurrency: int = 16,
) -> set[str]:
    """Return the subset of ``hashes`` already present in ``store``.

    The store has no multi-get, so point reads are fanned out on a bounded
    thread pool and joined before returning. Repeated hashes are read once.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    requested = list(hashes)
    unique_hashes = list(dict.fromkeys(requested))
    if not unique_hashes:
        return set()

    workers = min(concurrency, len(unique_hashes))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="import-hash") as pool:
        flags = list(pool.map(lambda value: hash_exists(store, value), unique_hashes))

    existing = {value for value, exists in zip(unique_hashes, flags) if exists}
    logger.info(
        "import_hash_batch_checked total=%s unique=%s existing=%s",
        len(requested),
        len(unique_hashes),
        len(existing),
    )
    return existing


def store_import_hash(
    store: ImportHashStore,
    import_hash: str,
    record: ImportHashRecord,
    *,
    ttl_seconds: int,
) -> None:
    store.put(import_hash_key(import_hash), record.model_dump(mode="json"), ttl_seconds=ttl_seconds)
