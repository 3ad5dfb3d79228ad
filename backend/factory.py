"""Composition root for backend services."""

from __future__ import annotations

import logging

from backend.clients.firefly_client import FireflyClient, FireflySettings
from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.import_hashes_repository import (
    ImportHashStore,
    InMemoryImportHashStore,
    SupabaseImportHashStore,
)
from backend.services.statement_import.importer import StatementImportService
from shared import config
from shared.models import BankAccounts


logger = logging.getLogger(__name__)


def build_import_hash_store(*, allow_in_memory: bool = True) -> ImportHashStore:
    """Return the Supabase-backed hash store when configured, else an in-memory one.

    Callers whose writes must outlive the process pass ``allow_in_memory=False``
    and get a ``RuntimeError`` instead of the in-memory fallback.
    """

    supabase_url = config.supabase_url()
    supabase_key = config.supabase_service_role_key()
    if supabase_url and supabase_key:
        client = SupabaseClient(
            settings=SupabaseSettings(url=supabase_url, service_role_key=supabase_key)
        )
        return SupabaseImportHashStore(client=client, table=config.import_hashes_table())

    if not allow_in_memory:
        raise RuntimeError(
            "Import hash store is not configured (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)"
        )

    logger.warning("import_hash_store_in_memory; duplicate detection will not survive restarts")
    return InMemoryImportHashStore()


def build_bank_accounts() -> BankAccounts:
    return BankAccounts(**config.bank_account_ids())


def build_statement_import_service() -> StatementImportService:
    firefly_url = config.firefly_api_url()
    firefly_token = config.firefly_api_token()
    if not firefly_url or not firefly_token:
        raise RuntimeError("Firefly III is not configured (FIREFLY_API_URL, FIREFLY_API_TOKEN)")

    return StatementImportService(
        ledger_client=FireflyClient(
            FireflySettings(
                url=firefly_url,
                token=firefly_token,
                default_currency=config.default_currency(),
            )
        ),
        hash_store=build_import_hash_store(),
        bank_accounts=build_bank_accounts(),
        hash_ttl_seconds=config.import_hash_ttl_seconds(),
        lookup_concurrency=config.import_hash_lookup_concurrency(),
    )
