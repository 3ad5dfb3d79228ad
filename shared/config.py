"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


_DEFAULT_HASH_TTL_DAYS = 365
_DEFAULT_LOOKUP_CONCURRENCY = 16
_DEFAULT_BANK_ACCOUNT_IDS = {
    "bbva": "9",
    "caixabank": "1",
    "imaginbank": "65",
}


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def _positive_int_env(name: str, default: int) -> int:
    raw_value = (get_env(name, "") or "").strip()
    if not raw_value:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        logger.warning("invalid_int_env name=%s value=%s default=%s", name, raw_value, default)
        return default
    if value <= 0:
        logger.warning("non_positive_int_env name=%s value=%s default=%s", name, value, default)
        return default
    return value


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def cors_allow_origins() -> list[str]:
    """Return CORS allowed origins from env with safe environment defaults."""
    raw_origins = get_env("CORS_ALLOW_ORIGINS", "") or ""
    parsed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    if parsed_origins:
        return parsed_origins

    if app_env().strip().lower() in {"dev", "local"}:
        return ["http://localhost:5173", "http://127.0.0.1:5173"]

    ui_origin = (get_env("UI_ORIGIN", "") or "").strip()
    if ui_origin:
        return [ui_origin]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS or UI_ORIGIN",
        app_env(),
    )

    return []


def firefly_api_url() -> str | None:
    """Return Firefly III base URL when configured."""
    return get_env("FIREFLY_API_URL")


def firefly_api_token() -> str | None:
    """Return Firefly III personal access token when configured."""
    return get_env("FIREFLY_API_TOKEN")


def default_currency() -> str:
    """Return the currency code used for created ledger transactions."""
    return (get_env("DEFAULT_CURRENCY", "EUR") or "EUR").strip().upper() or "EUR"


def import_hash_ttl_seconds() -> int:
    """Return how long import hashes are kept, from ``IMPORT_HASH_TTL_DAYS``."""
    return _positive_int_env("IMPORT_HASH_TTL_DAYS", _DEFAULT_HASH_TTL_DAYS) * 24 * 60 * 60


def import_hash_lookup_concurrency() -> int:
    """Return the maximum number of parallel hash store reads per import."""
    return _positive_int_env("IMPORT_HASH_LOOKUP_CONCURRENCY", _DEFAULT_LOOKUP_CONCURRENCY)


def import_hashes_table() -> str:
    """Return the Supabase table holding import hashes."""
    return (get_env("IMPORT_HASHES_TABLE", "import_hashes") or "import_hashes").strip() or "import_hashes"


def bank_account_ids() -> dict[str, str]:
    """Return the ledger account id configured for each supported bank."""
    return {
        bank: (get_env(f"FIREFLY_ACCOUNT_ID_{bank.upper()}", default) or default).strip() or default
        for bank, default in _DEFAULT_BANK_ACCOUNT_IDS.items()
    }


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    """Return Supabase service role key when configured."""
    return get_env("SUPABASE_SERVICE_ROLE_KEY")
