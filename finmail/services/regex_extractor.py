"""
Regex-based Extractor for bank and card email snippets.

Extracts structured guesses from email text using pattern matching.
Works WITHOUT any LLM/API - pure regex extraction.

Each field is an ordered tuple of matchers (text -> value or None);
the first matcher that returns a value wins.
"""

import re
from typing import Any, Callable, Dict, Optional, Sequence

from finmail.models.email import HeuristicFields

Matcher = Callable[[str], Optional[Any]]

DEBIT_KEYWORDS = ("debit", "withdrawal", "paid")
CREDIT_KEYWORDS = ("credit", "deposit", "received")

STATEMENT_PHRASES = {
    "monthly": ("monthly statement", "monthly account statement", "statement for the month"),
    "quarterly": ("quarterly statement", "quarterly account statement"),
    "annual": ("annual statement", "yearly statement", "annual account statement"),
}

# Lowercase, matched as literal substrings
PASSWORD_HINTS = [
    "password is your pan number",
    "password is your date of birth",
    "password is your customer id",
    "password is your registered mobile number",
    "password is the first four letters of your name",
    "last 5 digits of your registered mobile number",
    "last five digits of your mobile number",
    "dob in ddmmyy format",
    "dob in ddmmyyyy format",
    "password protected",
]

_NUMBER = r'(\d[\d,]*(?:\.\d+)?)'
_CURRENCY = r'(?:Rs\.?|₹|INR)'


# ============ HELPERS ============

def _first_match(text: str, matchers: Sequence[Matcher]) -> Optional[Any]:
    for matcher in matchers:
        value = matcher(text)
        if value is not None:
            return value
    return None


def parse_amount(raw: Optional[str]) -> Optional[float]:
    """Parse '1,234.50' -> 1234.5; None when it does not parse."""
    if raw is None:
        return None
    try:
        return float(str(raw).replace(",", "").strip())
    except ValueError:
        return None


def _capture(pattern: str, transform: Callable[[str], Any] = str.strip) -> Matcher:
    """Build a matcher returning the transformed first group of pattern."""
    compiled = re.compile(pattern, re.IGNORECASE)

    def matcher(text: str) -> Optional[Any]:
        match = compiled.search(text)
        if not match:
            return None
        value = transform(match.group(1))
        return value if value not in ("", None) else None

    return matcher


# ============ TRANSACTION TYPE ============

def match_transaction_type(text: str) -> str:
    """debit / credit / unknown by keyword, debit checked first."""
    lowered = text.lower()
    if any(kw in lowered for kw in DEBIT_KEYWORDS):
        return "debit"
    if any(kw in lowered for kw in CREDIT_KEYWORDS):
        return "credit"
    return "unknown"


# ============ AMOUNT ============

AMOUNT_MATCHERS = (
    _capture(_CURRENCY + r'\s*' + _NUMBER, parse_amount),
    _capture(_NUMBER + r'\s*' + _CURRENCY, parse_amount),
    _capture(r'\b' + _NUMBER, parse_amount),
)


def extract_amount(text: str) -> Optional[float]:
    return _first_match(text, AMOUNT_MATCHERS)


# ============ MERCHANT / COUNTERPARTY ============

MERCHANT_MATCHERS = (
    _capture(r'terminal\s+owner\s+name\s*[:\-]?\s*([^,\n]+)'),
    _capture(r'merchant\s*:\s*([^,\n]+)'),
    _capture(r'\bat\s+([^,\n]+)'),
    _capture(r'\bto\s+([^,\n]+)'),
)


def extract_merchant(text: str) -> Optional[str]:
    return _first_match(text, MERCHANT_MATCHERS)


# ============ UTR / REFERENCE ============

def _upper(value: str) -> str:
    return value.strip().upper()


UTR_MATCHERS = (
    _capture(r'\butr\s*(?:no\.?|number)?\s*[:\-]\s*([A-Za-z0-9]+)', _upper),
    _capture(r'\breference\s*(?:no\.?|number)?\s*[:\-]\s*([A-Za-z0-9]+)', _upper),
    _capture(r'\btransaction\s*(?:id|no\.?|number)?\s*[:\-]\s*([A-Za-z0-9]+)', _upper),
)


def extract_utr(text: str) -> Optional[str]:
    return _first_match(text, UTR_MATCHERS)


# ============ STATEMENTS ============

def extract_statement_type(text: str) -> Optional[str]:
    lowered = text.lower()
    for statement_type, phrases in STATEMENT_PHRASES.items():
        if any(phrase in lowered for phrase in phrases):
            return statement_type
    return None


_PERIOD_PATTERN = re.compile(
    r'\b(?:for|period|month|quarter|year)\b\s*(?:of|ending|ended|:|-)?\s*([^.\n]+)',
    re.IGNORECASE
)


def extract_statement_period(text: str) -> Optional[str]:
    """Trailing phrase after for/period/month/quarter/year on statement text."""
    if "statement" not in text.lower():
        return None
    for match in _PERIOD_PATTERN.finditer(text):
        period = match.group(1).strip(" ,:-")
        # Needs a digit or month name to be a period, not "for your records"
        if re.search(r'\d|jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec', period, re.IGNORECASE):
            return period
    return None


# ============ PASSWORD HINT ============

def extract_password_hint(text: str) -> Optional[str]:
    lowered = text.lower()
    for hint in PASSWORD_HINTS:
        if hint in lowered:
            return hint
    return None


# ============ ENTRY POINT ============

def _subject_from_payload(payload: Optional[Dict[str, Any]]) -> str:
    if not payload:
        return ""
    for header in payload.get("headers", []) or []:
        if str(header.get("name", "")).lower() == "subject":
            return header.get("value") or ""
    return ""


def extract_heuristic_fields(
    snippet: Optional[str],
    payload: Optional[Dict[str, Any]] = None
) -> HeuristicFields:
    """
    Extract all heuristic fields from an email snippet.

    Args:
        snippet: Plain-text preview of the email (may be None)
        payload: Optional Gmail payload; its Subject header is scanned too

    Returns:
        HeuristicFields; all-null when there is no snippet
    """
    if not snippet:
        return HeuristicFields()

    text = snippet
    subject = _subject_from_payload(payload)
    if subject:
        text = f"{subject}\n{snippet}"

    return HeuristicFields(
        transaction_type=match_transaction_type(text),
        amount=extract_amount(text),
        merchant=extract_merchant(text),
        utr_number=extract_utr(text),
        statement_type=extract_statement_type(text),
        statement_period=extract_statement_period(text),
        password_hint=extract_password_hint(text),
    )
