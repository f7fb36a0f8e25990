"""
Email extraction utilities for bank and card emails.

This module provides functions to:
- Pull sender, subject and date out of a Gmail header list
- Run the heuristic field parser over an EmailRecord
- Map an email to one of the user's registered accounts
- Sort emails by their Date header
"""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional

from finmail.models.email import EmailRecord, HeuristicFields
from finmail.models.profile import UserProfile
from finmail.services.regex_extractor import extract_heuristic_fields


def get_header(headers: List[Dict[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup; first occurrence wins."""
    wanted = name.lower()
    for header in headers or []:
        if str(header.get("name", "")).lower() == wanted:
            return header.get("value")
    return None


def extract_headers(headers: List[Dict[str, str]]) -> Dict[str, Optional[str]]:
    """
    Extract the headers the pipeline cares about.

    Args:
        headers: Gmail payload header list [{"name": ..., "value": ...}]

    Returns:
        Dictionary with 'from', 'subject' and 'date' keys (None if absent)
    """
    return {
        "from": get_header(headers, "From"),
        "subject": get_header(headers, "Subject"),
        "date": get_header(headers, "Date"),
    }


def parse_date_header(date_header: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 2822 Date header; None when it does not parse."""
    if not date_header:
        return None
    try:
        parsed = parsedate_to_datetime(date_header)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def header_date_iso(date_header: Optional[str]) -> Optional[str]:
    """Date header as an ISO date string, or None."""
    parsed = parse_date_header(date_header)
    return parsed.date().isoformat() if parsed else None


def sort_newest_first(emails: List[EmailRecord]) -> List[EmailRecord]:
    """Order emails by Date header, newest first; unparseable dates last."""
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(
        emails,
        key=lambda e: parse_date_header(e.date_header) or oldest,
        reverse=True
    )


def extract_fields(email: EmailRecord) -> HeuristicFields:
    """Heuristic fields for one email. Pure; same input, same output."""
    payload = {"headers": [{"name": "Subject", "value": email.subject}]} if email.subject else None
    return extract_heuristic_fields(email.snippet, payload)


def map_account(email: EmailRecord, profile: Optional[UserProfile]) -> Optional[dict]:
    """
    Find the registered account or card an email refers to.

    Matches on the last four digits of the account/card number, the way
    bank alerts mask them ("A/c XX1234", "card ending 1234").
    """
    if profile is None:
        return None

    text = f"{email.subject}\n{email.text}"

    for account in profile.bank_accounts:
        last4 = re.sub(r'\D', '', account.account_number)[-4:]
        if last4 and re.search(rf'(?<!\d){last4}(?!\d)', text):
            return {
                "type": "bank_account",
                "bankName": account.bank_name,
                "accountNumberLast4": last4,
            }

    for card in profile.credit_cards:
        last4 = re.sub(r'\D', '', card.card_number)[-4:]
        if last4 and re.search(rf'(?<!\d){last4}(?!\d)', text):
            return {
                "type": "credit_card",
                "provider": card.provider,
                "cardNumberLast4": last4,
            }

    return None


def attach_extracted_details(
    email: EmailRecord,
    profile: Optional[UserProfile] = None
) -> EmailRecord:
    """Return a copy of the email carrying heuristic details and account mapping."""
    return email.model_copy(update={
        "extracted_details": extract_fields(email),
        "account_mapping": map_account(email, profile),
    })
