"""API tests for the statement import endpoint."""

from __future__ import annotations

import base64
import importlib

from fastapi.testclient import TestClient

import backend.api
from backend.repositories.import_hashes_repository import InMemoryImportHashStore
from backend.services.statement_import.importer import StatementImportService
from tests.fakes import BANK_ACCOUNTS, IMAGINBANK_CSV, FakeLedgerClient


def _client(monkeypatch) -> tuple[TestClient, FakeLedgerClient]:
    api = importlib.reload(backend.api)
    ledger = FakeLedgerClient()
    service = StatementImportService(
        ledger_client=ledger,
        hash_store=InMemoryImportHashStore(),
        bank_accounts=BANK_ACCOUNTS,
    )
    monkeypatch.setattr(api, "get_statement_import_service", lambda: service)
    return TestClient(api.app), ledger


def _payload(content: bytes, filename: str = "movimientos.csv", **extra) -> dict[str, object]:
    return {
        "chat_id": "42",
        "filename": filename,
        "content_base64": base64.b64encode(content).decode("ascii"),
        **extra,
    }


def test_health() -> None:
    client = TestClient(importlib.reload(backend.api).app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_import_statement_returns_result_and_message(monkeypatch) -> None:
    client, ledger = _client(monkeypatch)

    response = client.post("/imports/statement", json=_payload(IMAGINBANK_CSV, lang="en"))

    assert response.status_code == 200
    payload = response.json()
    assert payload["result"]["bank"] == "imaginbank"
    assert payload["result"]["created"] == 3
    assert payload["message"].startswith("📥 ImaginBank Import")
    assert ledger.calls == 3


def test_import_statement_second_upload_reports_duplicates(monkeypatch) -> None:
    client, ledger = _client(monkeypatch)
    client.post("/imports/statement", json=_payload(IMAGINBANK_CSV))

    response = client.post("/imports/statement", json=_payload(IMAGINBANK_CSV))

    assert response.status_code == 200
    assert response.json()["result"]["duplicates"] == 3
    assert ledger.calls == 3


def test_import_statement_dry_run(monkeypatch) -> None:
    client, ledger = _client(monkeypatch)

    response = client.post("/imports/statement", json=_payload(IMAGINBANK_CSV, dry_run=True))

    assert response.status_code == 200
    assert response.json()["result"]["dry_run"] is True
    assert ledger.calls == 0


def test_import_statement_rejects_invalid_base64(monkeypatch) -> None:
    client, _ = _client(monkeypatch)

    response = client.post(
        "/imports/statement",
        json={"chat_id": "42", "filename": "a.csv", "content_base64": "not base64!"},
    )

    assert response.status_code == 400


def test_import_statement_unknown_bank_returns_422(monkeypatch) -> None:
    client, ledger = _client(monkeypatch)

    response = client.post("/imports/statement", json=_payload(b"hello", filename="notes.txt", lang="en"))

    assert response.status_code == 422
    assert response.json()["detail"].startswith("❌ Import failed: Could not detect bank")
    assert ledger.calls == 0


def test_import_statement_requires_chat_id(monkeypatch) -> None:
    client, _ = _client(monkeypatch)

    response = client.post(
        "/imports/statement",
        json={"chat_id": "", "filename": "a.csv", "content_base64": ""},
    )

    assert response.status_code == 422
