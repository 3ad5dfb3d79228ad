"""Pydantic contracts shared across the statement import pipeline."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class BankId(str, Enum):
    """Banks whose statement exports can be imported."""

    BBVA = "bbva"
    CAIXABANK = "caixabank"
    IMAGINBANK = "imaginbank"


class DetectionConfidence(str, Enum):
    """How certain the bank detection heuristic is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BankDetection(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bank: BankId
    confidence: DetectionConfidence


class ParsedTransaction(BaseModel):
    """Bank-agnostic transaction extracted from one statement row."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: date
    description: str
    amount: Decimal = Field(..., description="Signed amount, negative for outflows.")
    notes: str | None = None


class RowSkip(BaseModel):
    """Statement row that could not be turned into a transaction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    row: int
    reason: str


class ParsedStatement(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transactions: list[ParsedTransaction] = Field(default_factory=list)
    skipped: list[RowSkip] = Field(default_factory=list)


class BankAccounts(BaseModel):
    """Ledger account receiving the transactions of each bank."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    bbva: str
    caixabank: str
    imaginbank: str

    def account_for(self, bank: BankId) -> str:
        return getattr(self, bank.value)


class LedgerTransactionType(str, Enum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    TRANSFER = "transfer"


class LedgerTransactionRequest(BaseModel):
    """Transaction creation payload handed to the ledger client."""

    model_config = ConfigDict(extra="forbid")

    type: LedgerTransactionType
    date: date
    amount: Decimal = Field(..., gt=0)
    description: str
    notes: str | None = None
    source_account_id: str | None = None
    destination_account_id: str | None = None
    destination_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    currency_code: str | None = Field(default=None, min_length=3, max_length=3)


class CreatedLedgerTransaction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    description: str = ""


class ImportHashRecord(BaseModel):
    """Original parsed fields stored next to an import hash."""

    model_config = ConfigDict(extra="forbid")

    chat_id: str
    bank_id: BankId
    date: date
    amount: Decimal
    description: str
    imported_at: datetime

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, amount: Decimal) -> float:
        return float(amount)


class ImportRowError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    row: int
    description: str
    error: str


class ImportResult(BaseModel):
    """Outcome of one statement import."""

    model_config = ConfigDict(extra="forbid")

    bank: BankId
    bank_name: str
    confidence: DetectionConfidence | None = None
    total_parsed: int = 0
    created: int = 0
    duplicates: int = 0
    skipped_rows: int = 0
    dry_run: bool = False
    errors: list[ImportRowError] = Field(default_factory=list)
