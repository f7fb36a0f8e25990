"""
Parse and normalize free-text Gemini output into typed records.

The model is not guaranteed to answer with JSON only, so the first
bracketed span is pulled out of whatever prose surrounds it. A missing
or broken array means an empty result for the batch, never an error.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Union

from finmail.models.email import EmailRecord
from finmail.models.profile import UserProfile
from finmail.models.transaction import (
    CreditDebit,
    StatementRecord,
    StatementType,
    TransactionRecord,
)
from finmail.services.email_extractor import header_date_iso
from finmail.services.password_rules import find_rule
from finmail.services.regex_extractor import parse_amount

logger = logging.getLogger(__name__)

Record = Union[TransactionRecord, StatementRecord]

FALLBACK_NARRATION = "No narration available"
FALLBACK_COUNTERPARTY = "Unknown"

# Substrings that mark pdf_password as "the model could not derive it"
MISSING_INFO_MARKERS = ("needed", "missing", "not available", "not provided", "unknown", "required")

_ARRAY_PATTERN = re.compile(r'\[.*\]', re.DOTALL)


def extract_json_array(text: Optional[str]) -> Optional[str]:
    """Greedy first-'[' to last-']' span, or None."""
    if not text:
        return None
    match = _ARRAY_PATTERN.search(text)
    return match.group(0) if match else None


def _to_number(value: Any) -> Optional[float]:
    """Numbers or strings like '1,234.50' / 'Rs. 500' -> float; else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r'(?i)rs\.?|inr|₹', '', str(value))
    return parse_amount(cleaned)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def _credit_debit(value: Any) -> CreditDebit:
    lowered = str(value or "").strip().lower()
    if lowered.startswith(("cr", "deposit", "received")):
        return CreditDebit.CREDIT
    if lowered.startswith(("debit", "dr", "withdraw", "paid")):
        return CreditDebit.DEBIT
    return CreditDebit.UNKNOWN


def _statement_type(value: Any) -> StatementType:
    lowered = str(value or "").strip().lower()
    for member in StatementType:
        if member.value == lowered:
            return member
    if lowered in ("yearly", "annually"):
        return StatementType.ANNUAL
    return StatementType.UNKNOWN


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ============ CLASSIFICATION ============

def classify_item(item: Dict[str, Any]) -> str:
    """'transaction', 'statement' or 'unknown' for one parsed element."""
    if "txn_date" in item or item.get("txn_amount") is not None:
        return "transaction"
    if "statement_type" in item or "pdf_filename" in item:
        return "statement"
    return "unknown"


def _build_transaction(
    item: Dict[str, Any],
    email: Optional[EmailRecord],
    record_type: str
) -> TransactionRecord:
    amount = _to_number(item.get("txn_amount"))
    narration = _text(item.get("narration")) or (email.snippet if email and email.snippet else None)

    return TransactionRecord(
        email_id=str(item.get("email_id") or (email.id if email else "")),
        txn_date=_text(item.get("txn_date")) or (header_date_iso(email.date_header) if email else None),
        utr_number=_text(item.get("utr_number")),
        credit_or_debit=_credit_debit(item.get("credit_debit")),
        counterparty=_text(item.get("rcvd_from_paid_to")) or FALLBACK_COUNTERPARTY,
        narration=narration or FALLBACK_NARRATION,
        amount=amount if amount is not None else 0.0,
        available_balance=_to_number(item.get("available_balance")),
        source=_text(item.get("source")) or (email.source if email else None),
        pdf_attached=_to_bool(item.get("pdf_attached", bool(email and email.pdf_attachments))),
        pdf_password_protected=_to_bool(item.get("pdf_password_protected", False)),
        pdf_password=_text(item.get("pdf_password")),
        record_type=record_type,
    )


def _build_statement(item: Dict[str, Any], email: Optional[EmailRecord]) -> StatementRecord:
    pdf_filename = _text(item.get("pdf_filename"))
    if pdf_filename is None and email and email.pdf_attachments:
        pdf_filename = email.pdf_attachments[0].filename

    return StatementRecord(
        email_id=str(item.get("email_id") or (email.id if email else "")),
        statement_type=_statement_type(item.get("statement_type")),
        statement_date=_text(item.get("statement_date")) or (header_date_iso(email.date_header) if email else None),
        pdf_filename=pdf_filename,
        pdf_password_protected=_to_bool(item.get("pdf_password_protected", False)),
        pdf_password=_text(item.get("pdf_password")),
        source=_text(item.get("source")) or (email.source if email else None),
    )


def normalize_item(item: Dict[str, Any], email: Optional[EmailRecord]) -> Record:
    """Turn one parsed element into a record, defaulting every optional field."""
    kind = classify_item(item)
    if kind == "statement":
        return _build_statement(item, email)
    return _build_transaction(item, email, "transaction" if kind == "transaction" else "unknown")


# ============ PASSWORD POST-PROCESS ============

def needs_password_derivation(password: Optional[str]) -> bool:
    if password is None:
        return True
    lowered = password.lower()
    return any(marker in lowered for marker in MISSING_INFO_MARKERS)


def apply_password_rules(
    records: List[Record],
    batch: List[EmailRecord],
    profile: Optional[UserProfile]
) -> List[Record]:
    """
    Recompute placeholder passwords for statements from recognized banks.

    Returns a new list; untouched records are passed through as-is.
    """
    by_id = {email.id: email for email in batch}
    result: List[Record] = []

    for record in records:
        email = by_id.get(record.email_id)
        if (
            isinstance(record, StatementRecord)
            and record.pdf_password_protected
            and needs_password_derivation(record.pdf_password)
            and email is not None
        ):
            rule = find_rule(email.sender_domain)
            if rule is not None:
                record = record.model_copy(update={"pdf_password": rule.derive(profile)})
                logger.info("🔑 Derived PDF password for %s via %s rule", record.email_id, rule.bank_name)
        result.append(record)

    return result


# ============ ENTRY POINT ============

def parse_ai_response(
    text: Optional[str],
    batch: List[EmailRecord],
    profile: Optional[UserProfile] = None
) -> List[Record]:
    """
    Parse a raw model response for one batch.

    Args:
        text: Free-text model output, possibly with prose around the JSON
        batch: Emails the prompt was built from
        profile: Used only for the password post-process

    Returns:
        Transaction and statement records; [] when no array parses
    """
    span = extract_json_array(text)
    if span is None:
        logger.warning("⚠️ No JSON array found in Gemini response")
        return []

    try:
        items = json.loads(span)
    except json.JSONDecodeError as e:
        logger.warning("⚠️ Gemini response JSON did not parse: %s", e)
        return []

    if not isinstance(items, list):
        return []

    by_id = {email.id: email for email in batch}
    records: List[Record] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        records.append(normalize_item(item, by_id.get(str(item.get("email_id")))))

    return apply_password_rules(records, batch, profile)
