"""
Pydantic models for the finmail pipeline.

This package contains:
- EmailRecord: one fetched Gmail message (in-memory only)
- TransactionRecord / StatementRecord: normalized Gemini output
- UserProfile: identity + accounts, persisted one file per profile
- StoredFile: a persisted JSON artifact

Note: all models serialize with camelCase aliases.
"""

from finmail.models.email import EmailRecord, HeuristicFields, PdfAttachment
from finmail.models.profile import BankAccount, CreditCard, Identifiers, UserProfile
from finmail.models.stored_file import FileKind, StoredFile
from finmail.models.transaction import (
    BalanceEstimate,
    BalanceSource,
    CreditDebit,
    StatementRecord,
    StatementType,
    TransactionRecord,
)

__all__ = [
    "EmailRecord", "HeuristicFields", "PdfAttachment",
    "BankAccount", "CreditCard", "Identifiers", "UserProfile",
    "FileKind", "StoredFile",
    "BalanceEstimate", "BalanceSource", "CreditDebit",
    "StatementRecord", "StatementType", "TransactionRecord",
]
