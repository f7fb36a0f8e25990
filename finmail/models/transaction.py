"""
Normalized records produced by the Gemini extraction pipeline.

Every record traces back to exactly one EmailRecord id. Amounts and
balances are stored non-negative; direction lives in credit_or_debit.
"""

import enum
from typing import Literal, Optional

from pydantic import Field, field_validator

from finmail.models.base import CamelModel


class CreditDebit(str, enum.Enum):
    """Direction of money movement."""
    CREDIT = "credit"
    DEBIT = "debit"
    UNKNOWN = "unknown"


class StatementType(str, enum.Enum):
    """Statement cadence."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    UNKNOWN = "unknown"


class BalanceSource(str, enum.Enum):
    """Where a balance estimate came from."""
    TRANSACTION = "transaction"
    EMAIL = "email"
    DERIVED = "derived"  # nothing found


class TransactionRecord(CamelModel):
    """One transaction parsed from a bank or card email."""
    email_id: str
    txn_date: Optional[str] = None  # ISO date, best effort
    utr_number: Optional[str] = None
    credit_or_debit: CreditDebit = CreditDebit.UNKNOWN
    counterparty: str = "Unknown"  # sender for credit, recipient for debit
    narration: str = ""
    amount: float = 0.0
    available_balance: Optional[float] = None
    source: Optional[str] = None
    pdf_attached: bool = False
    pdf_password_protected: bool = False
    pdf_password: Optional[str] = None  # may be a "{DOB} needed" sentinel
    record_type: Literal["transaction", "unknown"] = Field("transaction", alias="type")

    @field_validator("amount")
    @classmethod
    def _non_negative_amount(cls, v: float) -> float:
        return abs(v)

    @field_validator("available_balance")
    @classmethod
    def _non_negative_balance(cls, v: Optional[float]) -> Optional[float]:
        return abs(v) if v is not None else None


class StatementRecord(CamelModel):
    """A statement email, usually carrying a (possibly locked) PDF."""
    email_id: str
    statement_type: StatementType = StatementType.UNKNOWN
    statement_date: Optional[str] = None
    pdf_filename: Optional[str] = None
    pdf_password_protected: bool = False
    pdf_password: Optional[str] = None
    source: Optional[str] = None
    record_type: Literal["statement"] = Field("statement", alias="type")


class BalanceEstimate(CamelModel):
    """Most recent account balance and its provenance."""
    amount: Optional[float] = None
    source: BalanceSource = BalanceSource.DERIVED
    as_of_date: Optional[str] = None
