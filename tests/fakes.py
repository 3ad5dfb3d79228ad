"""Deterministic fakes and fixtures for statement import tests."""

from __future__ import annotations

import io
from dataclasses import dataclass, field

from openpyxl import Workbook

from shared.models import BankAccounts, CreatedLedgerTransaction, LedgerTransactionRequest


BANK_ACCOUNTS = BankAccounts(bbva="9", caixabank="1", imaginbank="65")

IMAGINBANK_CSV = """IBAN;ES00 0000 0000 0000 0000 0000
Saldo disponible;1.234,56EUR
Concepto;Fecha;Importe;Saldo disponible
Mercadona;05/03/2026;-23,40EUR;1.211,16EUR
Nomina Marzo;01/03/2026;1.500,00EUR;2.711,16EUR
Bizum Ana;02/03/2026;-15.5;2.695,66EUR
""".encode("utf-8")


def build_xlsx(rows: list[list[object]], sheet_name: str = "Sheet1") -> bytes:
    """Return an in-memory xlsx workbook holding ``rows`` on its first sheet."""

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def bbva_rows() -> list[list[object]]:
    return [
        [None, "Últimos movimientos"],
        [None, "Cuenta: ES00 0182 0000 0000 0000"],
        [],
        [
            None,
            "F.Valor",
            "Fecha",
            "Concepto",
            "Movimiento",
            "Importe",
            "Divisa",
            "Disponible",
            "Divisa",
            "Observaciones",
        ],
        [None, "03/03/2026", "03/03/2026", "Mercadona", "Pago con tarjeta", -23.4, "EUR", 976.6, "EUR", "Compra 1234"],
        [None, "04/03/2026", "04/03/2026", "Nomina", "Transferencia recibida", 1500, "EUR", 2476.6, "EUR", ""],
    ]


def caixabank_rows() -> list[list[object]]:
    return [
        ["Movimientos de la cuenta ES00 2100 0000 0000 0000"],
        [],
        ["Fecha", "Fecha valor", "Movimiento", "Más datos", "Importe", "Saldo"],
        [46086, 46086, "COMPRA TARJ. MERCADONA", "Tarjeta 1234", -23.4, 976.6],
        [46087, 46087, "TRANSF. NOMINA", "", 1500, 2476.6],
    ]


@dataclass(slots=True)
class FakeLedgerClient:
    """Ledger client fake recording requests, failing on selected call numbers."""

    fail_on_calls: set[int] = field(default_factory=set)
    requests: list[LedgerTransactionRequest] = field(default_factory=list)
    calls: int = 0

    def create_transaction(self, request: LedgerTransactionRequest) -> CreatedLedgerTransaction:
        self.calls += 1
        if self.calls in self.fail_on_calls:
            raise RuntimeError("Firefly API error 422: invalid transaction")
        self.requests.append(request)
        return CreatedLedgerTransaction(id=str(len(self.requests)), description=request.description)


class FailingHashStore:
    """Hash store whose writes always fail."""

    def __init__(self) -> None:
        self.reads = 0

    def get(self, key: str) -> dict[str, object] | None:
        self.reads += 1
        return None

    def put(self, key: str, value: dict[str, object], *, ttl_seconds: int) -> None:
        raise RuntimeError("store unavailable")
