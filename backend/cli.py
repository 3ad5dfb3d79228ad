"""Command line tools for the statement import pipeline."""

from __future__ import annotations

import json
from pathlib import Path

import click

from backend.factory import build_import_hash_store
from backend.services.statement_import.bank_detector import bank_display_name, detect_bank
from backend.services.statement_import.import_hash import (
    build_hash_record,
    generate_import_hash,
    import_hash_key,
    store_import_hash,
)
from backend.services.statement_import.routing import parse_statement_file
from shared import config
from shared.models import ImportHashRecord


def collect_import_hashes(content: bytes, filename: str, chat_id: str) -> dict[str, ImportHashRecord]:
    """Return hash -> record for every transaction of one statement file."""

    detection = detect_bank(content, filename)
    if detection is None:
        raise click.ClickException(f"Could not detect bank from file {filename!r}")

    statement = parse_statement_file(content, filename, detection.bank)
    entries: dict[str, ImportHashRecord] = {}
    for tx in statement.transactions:
        import_hash = generate_import_hash(chat_id, detection.bank, tx.date, tx.amount, tx.description)
        entries.setdefault(
            import_hash,
            build_hash_record(chat_id, detection.bank, tx.date, tx.amount, tx.description),
        )
    click.echo(
        f"{filename}: {bank_display_name(detection.bank)}, "
        f"{len(statement.transactions)} transactions, {len(entries)} unique hashes",
        err=True,
    )
    return entries


@click.command("prefill-hashes")
@click.argument("chat_id")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write bulk JSON entries to this file instead of stdout.",
)
@click.option("--write", "write_store", is_flag=True, help="Store hashes in the configured hash store.")
@click.option(
    "--ttl-days",
    type=click.IntRange(min=1),
    default=None,
    help="Hash retention in days (defaults to IMPORT_HASH_TTL_DAYS).",
)
def prefill_hashes(
    chat_id: str,
    files: tuple[Path, ...],
    output: Path | None,
    write_store: bool,
    ttl_days: int | None,
) -> None:
    """Mark transactions of already imported statements as known.

    Parses each FILE the same way the bot import does and records the import
    hash of every transaction for CHAT_ID, so later imports of overlapping
    statements skip them as duplicates.
    """

    ttl_seconds = ttl_days * 24 * 60 * 60 if ttl_days else config.import_hash_ttl_seconds()
    store = None
    if write_store:
        try:
            store = build_import_hash_store(allow_in_memory=False)
        except RuntimeError as exc:
            raise click.ClickException(f"--write needs a persistent hash store: {exc}") from exc

    entries: dict[str, ImportHashRecord] = {}
    failures = 0
    for path in files:
        try:
            file_entries = collect_import_hashes(path.read_bytes(), path.name, chat_id)
        except click.ClickException as exc:
            click.echo(f"Error: {exc.message}", err=True)
            failures += 1
            continue
        except Exception as exc:
            click.echo(f"Error: failed to parse {path.name}: {exc}", err=True)
            failures += 1
            continue
        for import_hash, record in file_entries.items():
            entries.setdefault(import_hash, record)

    if failures == len(files):
        raise click.ClickException("No statement file could be processed")

    if store is not None:
        for import_hash, record in entries.items():
            store_import_hash(store, import_hash, record, ttl_seconds=ttl_seconds)
        click.echo(f"Stored {len(entries)} hashes", err=True)
        return

    bulk = [
        {
            "key": import_hash_key(import_hash),
            "value": json.dumps(record.model_dump(mode="json")),
            "expiration_ttl": ttl_seconds,
        }
        for import_hash, record in entries.items()
    ]
    payload = json.dumps(bulk, indent=2)
    if output is not None:
        output.write_text(payload, encoding="utf-8")
        click.echo(f"Wrote {len(bulk)} hashes to {output}", err=True)
    else:
        click.echo(payload)


def main() -> None:
    """Main entry point for CLI."""
    prefill_hashes()


if __name__ == "__main__":
    main()
