"""Firefly III ledger client used to create imported transactions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from shared.models import CreatedLedgerTransaction, LedgerTransactionRequest, LedgerTransactionType


class LedgerClient(Protocol):
    def create_transaction(self, request: LedgerTransactionRequest) -> CreatedLedgerTransaction:
        """Create one transaction in the ledger, raising on any failure."""


class FireflyClientError(RuntimeError):
    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(slots=True)
class FireflySettings:
    url: str
    token: str
    default_currency: str = "EUR"
    timeout_seconds: float = 30.0


class FireflyClient:
    def __init__(self, settings: FireflySettings) -> None:
        self.settings = settings

    @property
    def base_url(self) -> str:
        return self.settings.url.rstrip("/")

    def _request(self, path: str, *, method: str = "GET", payload: dict[str, Any] | None = None) -> Any:
        request = Request(
            url=f"{self.base_url}/api/v1{path}",
            headers={
                "Authorization": f"Bearer {self.settings.token}",
                "Content-Type": "application/json",
                "Accept": "application/vnd.api+json",
            },
            data=json.dumps(payload).encode("utf-8") if payload is not None else None,
            method=method,
        )
        try:
            with urlopen(request, timeout=self.settings.timeout_seconds) as response:  # noqa: S310 - URL comes from trusted env config
                return json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise FireflyClientError(
                f"Firefly API error {exc.code}: {body}", status=exc.code
            ) from exc
        except URLError as exc:
            raise FireflyClientError(f"Firefly API unreachable: {exc.reason}") from exc

    def build_transaction_payload(self, request: LedgerTransactionRequest) -> dict[str, Any]:
        is_withdrawal = request.type == LedgerTransactionType.WITHDRAWAL
        is_deposit = request.type == LedgerTransactionType.DEPOSIT

        split: dict[str, Any] = {
            "type": request.type.value,
            "date": request.date.isoformat(),
            "amount": str(request.amount),
            "description": request.description,
            "currency_code": request.currency_code or self.settings.default_currency,
            "tags": list(request.tags),
        }
        if request.notes:
            split["notes"] = request.notes
        if request.source_account_id and not is_deposit:
            split["source_id"] = request.source_account_id
        if is_withdrawal:
            split["destination_name"] = request.destination_name or request.description
        elif request.destination_account_id:
            split["destination_id"] = request.destination_account_id

        return {
            "error_if_duplicate_hash": False,
            "apply_rules": True,
            "fire_webhooks": True,
            "transactions": [split],
        }

    def create_transaction(self, request: LedgerTransactionRequest) -> CreatedLedgerTransaction:
        response = self._request(
            "/transactions",
            method="POST",
            payload=self.build_transaction_payload(request),
        )
        try:
            data = response["data"]
            splits = data.get("attributes", {}).get("transactions") or [{}]
            return CreatedLedgerTransaction(
                id=str(data["id"]),
                description=str(splits[0].get("description") or ""),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise FireflyClientError(f"Unexpected Firefly response: {response!r}"[:500]) from exc
