"""
Balance Reconciler.

Picks the single most recent account balance. A balance already present
on a normalized transaction beats one scraped from raw email text.
"""

import re
from typing import List, Optional, Sequence

from finmail.models.email import EmailRecord
from finmail.models.transaction import BalanceEstimate, BalanceSource, TransactionRecord
from finmail.services.email_extractor import header_date_iso, sort_newest_first
from finmail.services.regex_extractor import parse_amount

_AMOUNT = r'[:\-]?\s*(?:is\s*)?(?:rs\.?|inr|₹)?\s*(\d[\d,]*(?:\.\d+)?)'

# Ordered; first pattern to match within an email wins
BALANCE_PATTERNS = [
    re.compile(r'avl\.?\s*bal(?:ance)?\.?\s*' + _AMOUNT, re.IGNORECASE),
    re.compile(r'available\s*bal(?:ance)?\.?\s*' + _AMOUNT, re.IGNORECASE),
    re.compile(r'closing\s*bal(?:ance)?\.?\s*' + _AMOUNT, re.IGNORECASE),
    re.compile(r'a/c\s*bal(?:ance)?\.?\s*' + _AMOUNT, re.IGNORECASE),
    re.compile(r'balance\s*(?:in\s*your\s*(?:account|a/c)\s*)?' + _AMOUNT, re.IGNORECASE),
]


def extract_balance(text: Optional[str]) -> Optional[float]:
    """First balance figure found in text, or None."""
    if not text:
        return None
    for pattern in BALANCE_PATTERNS:
        match = pattern.search(text)
        if match:
            value = parse_amount(match.group(1))
            if value is not None:
                return value
    return None


def _balance_from_records(records: Sequence) -> Optional[BalanceEstimate]:
    candidates = [
        r for r in records
        if isinstance(r, TransactionRecord) and r.available_balance is not None
    ]
    if not candidates:
        return None
    # Undated records sort after dated ones
    latest = max(candidates, key=lambda r: (r.txn_date is not None, r.txn_date or ""))
    return BalanceEstimate(
        amount=latest.available_balance,
        source=BalanceSource.TRANSACTION,
        as_of_date=latest.txn_date,
    )


def _balance_from_emails(emails: List[EmailRecord]) -> Optional[BalanceEstimate]:
    for email in sort_newest_first(emails):
        amount = extract_balance(email.text)
        if amount is not None:
            return BalanceEstimate(
                amount=amount,
                source=BalanceSource.EMAIL,
                as_of_date=header_date_iso(email.date_header),
            )
    return None


def reconcile_balance(
    emails: Optional[List[EmailRecord]] = None,
    records: Optional[Sequence] = None
) -> BalanceEstimate:
    """
    Most recent balance estimate from records and/or emails.

    Args:
        emails: Raw emails, scanned newest-first by Date header
        records: Normalized records; their balances take precedence

    Returns:
        BalanceEstimate; amount None with source 'derived' when nothing found
    """
    return (
        _balance_from_records(records or [])
        or _balance_from_emails(emails or [])
        or BalanceEstimate(amount=None, source=BalanceSource.DERIVED, as_of_date=None)
    )
