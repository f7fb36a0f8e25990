"""Tests for the heuristic field parser."""

from finmail.services.regex_extractor import (
    extract_amount,
    extract_heuristic_fields,
    extract_merchant,
    extract_password_hint,
    extract_statement_period,
    extract_statement_type,
    extract_utr,
    match_transaction_type,
    parse_amount,
)


def test_missing_snippet_is_all_null():
    for snippet in (None, ""):
        fields = extract_heuristic_fields(snippet)
        assert fields.is_empty()
        assert fields.transaction_type is None


def test_amount_strips_commas_keeps_decimals():
    assert extract_amount("Rs. 1,234.50 debited") == 1234.50


def test_amount_pattern_order():
    assert extract_amount("INR 250 spent") == 250.0
    assert extract_amount("₹99.9 paid") == 99.9
    assert extract_amount("You paid 75 Rs at store") == 75.0
    assert extract_amount("Amount 3,000 transferred") == 3000.0
    assert extract_amount("no figures here") is None


def test_parse_amount_failure_is_none():
    assert parse_amount(",") is None
    assert parse_amount(None) is None


def test_paid_to_is_debit_with_merchant():
    fields = extract_heuristic_fields("Paid to Amazon via UPI")
    assert fields.transaction_type == "debit"
    assert fields.merchant == "Amazon via UPI"


def test_transaction_type_keywords():
    assert match_transaction_type("Salary credited to your account") == "credit"
    assert match_transaction_type("Cash WITHDRAWAL at ATM") == "debit"
    assert match_transaction_type("Deposit received") == "credit"
    assert match_transaction_type("Your OTP is 1234") == "unknown"


def test_merchant_patterns_in_order():
    assert extract_merchant("Terminal Owner Name SWIGGY BANGALORE, on 01-01") == "SWIGGY BANGALORE"
    assert extract_merchant("Merchant: Flipkart\nAmount: 10") == "Flipkart"
    assert extract_merchant("spent at Starbucks Coffee, card XX12") == "Starbucks Coffee"
    assert extract_merchant("received from Jane, token 55") is None


def test_merchant_to_needs_word_boundary():
    assert extract_merchant("Your token expired") is None


def test_utr_uppercased():
    assert extract_utr("UPI ref: UTR No: abc123xyz") == "ABC123XYZ"
    assert extract_utr("Reference number: rf99") == "RF99"
    assert extract_utr("Transaction ID: tx42") == "TX42"
    assert extract_utr("nothing to see") is None


def test_utr_needs_separator():
    assert extract_utr("Your UPI transaction reference number is 401234567890") is None
    assert extract_utr("Please keep this mail for reference purposes") is None
    assert extract_utr("UTR-77aa") == "77AA"
    assert extract_heuristic_fields("Rs. 500 debited. UTR is 998877").utr_number is None


def test_statement_type_and_period():
    text = "Your Monthly Statement for December 2023 is ready"
    assert extract_statement_type(text) == "monthly"
    assert extract_statement_period(text) == "December 2023 is ready"
    assert extract_statement_type("Quarterly statement attached") == "quarterly"
    assert extract_statement_type("Annual statement enclosed") == "annual"


def test_period_only_on_statement_text():
    assert extract_statement_period("Paid for 2 items") is None


def test_password_hint_verbatim():
    text = "Your e-statement is attached. The PASSWORD IS YOUR PAN NUMBER in caps."
    assert extract_password_hint(text) == "password is your pan number"
    assert extract_password_hint("hello") is None


def test_payload_subject_is_scanned():
    payload = {"headers": [{"name": "Subject", "value": "Monthly Statement for Jan 2024"}]}
    fields = extract_heuristic_fields("Please find attached", payload)
    assert fields.statement_type == "monthly"


def test_extraction_is_idempotent():
    snippet = "Rs. 1,234.50 debited from A/c XX1234 to VPA swiggy@upi, UTR: 401234567890"
    assert extract_heuristic_fields(snippet) == extract_heuristic_fields(snippet)
